"""Checkpoint registry and the handles that pin the rewind window."""

from __future__ import annotations

from bisect import bisect_left, insort
from contextlib import AbstractContextManager
from typing import Iterator, List, Optional

from rewind_stream.runtime import telemetry

from .errors import CheckpointReleasedError, RegistryCorruptionError


class CheckpointRegistry:
    """Ascending multiset of cursors, one entry per live checkpoint.

    The owning buffer reads ``first()`` to decide how much of the window may
    be dropped; handles add and remove their own entries.
    """

    __slots__ = ("_cursors", "_logger_name")

    def __init__(self, *, logger_name: Optional[str] = None) -> None:
        self._cursors: List[int] = []
        self._logger_name = logger_name

    def __len__(self) -> int:
        return len(self._cursors)

    def __bool__(self) -> bool:
        return bool(self._cursors)

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._cursors))

    def first(self, default: Optional[int] = None) -> Optional[int]:
        if not self._cursors:
            return default
        return self._cursors[0]

    def count(self, cursor: int) -> int:
        lo = bisect_left(self._cursors, cursor)
        hi = lo
        while hi < len(self._cursors) and self._cursors[hi] == cursor:
            hi += 1
        return hi - lo

    def register(self, cursor: int) -> None:
        if cursor < 0:
            raise ValueError("cursor must be non-negative")
        insort(self._cursors, cursor)

    def unregister(self, cursor: int) -> None:
        index = bisect_left(self._cursors, cursor)
        if index == len(self._cursors) or self._cursors[index] != cursor:
            telemetry.record_event(
                "checkpoint.registry_corrupt",
                level="error",
                data={"cursor": cursor, "live": len(self._cursors)},
                logger_name=self._logger_name,
            )
            raise RegistryCorruptionError(cursor)
        del self._cursors[index]

    def issue(self, cursor: int) -> "Checkpoint":
        """Register ``cursor`` and return a handle that owns the entry."""

        self.register(cursor)
        return Checkpoint(cursor, self)


class Checkpoint(AbstractContextManager["Checkpoint"]):
    """Handle pinning one cursor position in a buffer's window.

    Two handles are equal when they point at the same cursor. Each handle owns
    exactly one registry entry until ``release()`` (or ``close()``, or leaving
    a ``with`` block) gives it back; ``duplicate()`` takes out a new entry at
    the same cursor.
    """

    __slots__ = ("_cursor", "_registry", "_released")

    def __init__(self, cursor: int, registry: CheckpointRegistry) -> None:
        self._cursor = cursor
        self._registry = registry
        self._released = False

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def registry(self) -> CheckpointRegistry:
        return self._registry

    @property
    def released(self) -> bool:
        return self._released

    def duplicate(self) -> "Checkpoint":
        if self._released:
            raise CheckpointReleasedError(self._cursor)
        return self._registry.issue(self._cursor)

    __copy__ = duplicate

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._registry.unregister(self._cursor)

    close = release

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Checkpoint):
            return NotImplemented
        return self._cursor == other._cursor

    def __hash__(self) -> int:
        return hash(self._cursor)

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"Checkpoint(cursor={self._cursor}, {state})"


__all__ = ["CheckpointRegistry", "Checkpoint"]
