"""Rewindable cursor buffer over a one-shot source."""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from typing import ContextManager, Generic, Iterable, Iterator, List, Optional, TypeVar

from rewind_stream.runtime import telemetry

from .checkpoints import Checkpoint, CheckpointRegistry
from .errors import CheckpointReleasedError, OutOfWindowError
from .source import END, FusedSource
from .storage import DequeStorage, WindowStorage

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class WindowView:
    """Snapshot of the retained window."""

    cursor: int
    oldest: int
    length: int
    live_checkpoints: tuple[int, ...]
    exhausted: bool

    @property
    def newest(self) -> int:
        return self.oldest + self.length


class StreamBuffer(Generic[T]):
    """Cursor-addressed, rewindable view over an iterable that can be read once.

    Items are retained only while some live checkpoint could rewind to them.
    With no checkpoint outstanding, reads pass straight through and nothing
    is stored. Memory is only reclaimed when a read reaches the live edge;
    releasing a checkpoint does not shrink the window by itself.
    """

    def __init__(
        self,
        source: Iterable[T],
        *,
        storage: Optional[WindowStorage[T]] = None,
        name: str = "stream",
        logger_name: Optional[str] = None,
    ) -> None:
        self.name = name
        self._source: FusedSource[T] = FusedSource(source)
        self._storage: WindowStorage[T] = (
            storage if storage is not None else DequeStorage()
        )
        if len(self._storage):
            raise ValueError("storage must start empty")
        self._logger_name = logger_name or telemetry.buffer_logger_name(name)
        self._registry = CheckpointRegistry(logger_name=self._logger_name)
        self._cursor = 0
        self._oldest = 0

    @property
    def logger_name(self) -> str:
        return self._logger_name

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        """True once the source has reported end-of-stream."""

        return self._source.exhausted

    @property
    def source_pulls(self) -> int:
        return self._source.pulls

    @property
    def live_checkpoints(self) -> int:
        return len(self._registry)

    def window(self) -> WindowView:
        return WindowView(
            cursor=self._cursor,
            oldest=self._oldest,
            length=len(self._storage),
            live_checkpoints=tuple(self._registry),
            exhausted=self._source.exhausted,
        )

    def read_next(self, default: Optional[T] = None) -> Optional[T]:
        """Return the next item, or ``default`` at end-of-stream.

        The cursor only advances when an item is returned.
        """

        item = self._advance()
        if item is END:
            return default
        return item

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        item = self._advance()
        if item is END:
            raise StopIteration
        return item

    def _advance(self) -> T:
        position = self._cursor
        index = position - self._oldest
        if index < len(self._storage):
            self._cursor = position + 1
            return self._storage.get(index)

        # Live edge: reclaim what no checkpoint can reach, then pull.
        self._evict(position)
        item = self._source.pull()
        if item is END:
            return item
        self._cursor = position + 1
        if self._registry:
            self._storage.push(item)
        else:
            self._oldest = self._cursor
        return item

    def _evict(self, position: int) -> None:
        floor = min(self._registry.first(position), position)
        delta = floor - self._oldest
        if delta <= 0:
            return
        dropped = min(delta, len(self._storage))
        self._storage.drain_front(delta)
        self._oldest = floor
        if dropped and telemetry.enabled("debug"):
            telemetry.record_event(
                "buffer.evict",
                level="debug",
                data={"buffer": self.name, "dropped": dropped, "oldest": floor},
                logger_name=self._logger_name,
            )

    def checkpoint(self) -> Checkpoint:
        """Pin the current cursor so later reads can be replayed from here."""

        return self._registry.issue(self._cursor)

    def rewind(self, to: Checkpoint) -> None:
        """Move the cursor back (or forward) to ``to``.

        The checkpoint stays live; release it separately.
        """

        self._check_target(to)
        self._cursor = to.cursor

    def is_at(self, checkpoint: Checkpoint) -> bool:
        return self._cursor == checkpoint.cursor

    def slice(self, start: Checkpoint, end: Checkpoint) -> List[T]:
        """Return a copy of the retained items in ``[start.cursor, end.cursor)``."""

        lo, hi = self._window_range(start.cursor, end.cursor)
        return self._storage.items(lo, hi)

    def checkpointed(self) -> ContextManager[Checkpoint]:
        """Yield a checkpoint that is released however the block exits."""

        return _checkpointed(self)

    def attempt(self, label: str = "attempt") -> "Attempt[T]":
        """Context manager that rewinds if the block raises."""

        return Attempt(self, label)

    def _check_target(self, checkpoint: Checkpoint) -> None:
        if checkpoint.registry is not self._registry:
            raise ValueError("checkpoint was issued by a different buffer")
        if checkpoint.released:
            raise CheckpointReleasedError(checkpoint.cursor)
        newest = self._oldest + len(self._storage)
        if not self._oldest <= checkpoint.cursor <= max(newest, self._cursor):
            raise OutOfWindowError(
                "rewind target outside retained window",
                start=checkpoint.cursor,
                end=checkpoint.cursor,
                oldest=self._oldest,
                newest=newest,
            )

    def _window_range(self, start: int, end: int) -> tuple[int, int]:
        if start > end:
            raise ValueError(f"slice start {start} is after end {end}")
        newest = self._oldest + len(self._storage)
        if start < self._oldest or end > newest:
            raise OutOfWindowError(
                "slice outside retained window",
                start=start,
                end=end,
                oldest=self._oldest,
                newest=newest,
            )
        return start - self._oldest, end - self._oldest


@contextmanager
def _checkpointed(buffer: StreamBuffer[T]) -> Iterator[Checkpoint]:
    checkpoint = buffer.checkpoint()
    try:
        yield checkpoint
    finally:
        checkpoint.release()


class Attempt(AbstractContextManager["Checkpoint"], Generic[T]):
    """Speculative read: on error the buffer is rewound to where it started.

    The starting checkpoint is released on every exit path. Exceptions are
    never swallowed.
    """

    def __init__(self, buffer: StreamBuffer[T], label: str) -> None:
        self.buffer = buffer
        self.label = label
        self.checkpoint: Optional[Checkpoint] = None
        self._span_cm: Optional[ContextManager[telemetry.SpanHandle]] = None
        self._span: Optional[telemetry.SpanHandle] = None

    def __enter__(self) -> Checkpoint:
        self.checkpoint = self.buffer.checkpoint()
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            logger_name=self.buffer.logger_name,
            component="buffer",
            metadata={"buffer": self.buffer.name, "cursor": self.buffer.cursor},
        )
        self._span = self._span_cm.__enter__()
        return self.checkpoint

    def __exit__(self, exc_type, exc, tb) -> bool:
        checkpoint = self.checkpoint
        try:
            if checkpoint is not None:
                if exc_type is not None:
                    self.buffer.rewind(checkpoint)
                    if self._span is not None:
                        self._span.rewound(checkpoint.cursor)
                checkpoint.release()
        finally:
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["StreamBuffer", "WindowView", "Attempt"]
