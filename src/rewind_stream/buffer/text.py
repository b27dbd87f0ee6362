"""Character buffer whose window is one contiguous string.

Keeping the window as text lets the parse helpers hand a slice straight to a
converter such as ``int`` or ``decimal.Decimal`` instead of joining retained
characters first.
"""

from __future__ import annotations

from itertools import chain
from typing import IO, Any, Callable, Iterable, Optional, Tuple, TypeVar, Union

from rewind_stream.runtime import telemetry

from .checkpoints import Checkpoint
from .errors import TextParseError
from .source import END, iter_chunks
from .storage import TextStorage
from .stream import StreamBuffer

V = TypeVar("V")

Converter = Callable[[str], V]
PrefixLimit = Union[int, Callable[[str], bool]]

_CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError)


def _converter_name(convert: Callable[..., Any]) -> str:
    return getattr(convert, "__qualname__", None) or repr(convert)


def _try_convert(
    convert: Converter[V], text: str
) -> Tuple[Optional[V], Optional[Exception]]:
    try:
        return convert(text), None
    except _CONVERSION_ERRORS as exc:
        return None, exc


class TextStreamBuffer(StreamBuffer[str]):
    """``StreamBuffer`` specialised for characters.

    The source may yield single characters or longer strings (for example a
    text file iterated line by line); either way the buffer surfaces one
    character per read.
    """

    def __init__(
        self,
        source: Iterable[str],
        *,
        name: str = "text",
        logger_name: Optional[str] = None,
    ) -> None:
        self._text = TextStorage()
        super().__init__(
            chain.from_iterable(source),
            storage=self._text,
            name=name,
            logger_name=logger_name,
        )

    @classmethod
    def from_reader(
        cls,
        reader: IO[str],
        *,
        chunk_size: int = 4096,
        name: str = "text",
        logger_name: Optional[str] = None,
    ) -> "TextStreamBuffer":
        """Wrap a text file object, reading ``chunk_size`` characters at a time."""

        return cls(
            iter_chunks(reader.read, chunk_size), name=name, logger_name=logger_name
        )

    def slice_text(self, start: Checkpoint, end: Checkpoint) -> str:
        lo, hi = self._window_range(start.cursor, end.cursor)
        return self._text.text(lo, hi)

    def parse_slice(
        self, start: Checkpoint, end: Checkpoint, convert: Converter[V] = int
    ) -> V:
        """Convert the text between two checkpoints without moving the cursor."""

        text = self.slice_text(start, end)
        value, error = _try_convert(convert, text)
        if error is not None:
            raise TextParseError(text, converter=_converter_name(convert)) from error
        return value  # type: ignore[return-value]

    def parse_remaining(self, convert: Converter[V] = int) -> V:
        """Read the source to its end and convert everything from the cursor on.

        On failure the cursor is put back where it was and ``TextParseError``
        is raised; the characters read stay buffered until the next eviction.
        """

        return self._parse_from_here("parse_remaining", convert, self._drain)

    def parse_prefix(self, limit: PrefixLimit, convert: Converter[V] = int) -> V:
        """Convert a bounded prefix starting at the cursor.

        ``limit`` is either a character count (fewer are taken if the source
        ends first) or a predicate; with a predicate, the prefix stops before
        the first character it rejects.
        """

        if isinstance(limit, bool) or not (isinstance(limit, int) or callable(limit)):
            raise TypeError("limit must be a count or a predicate")
        if isinstance(limit, int):
            if limit < 0:
                raise ValueError("count must be non-negative")
            count = limit
            return self._parse_from_here(
                "parse_prefix", convert, lambda: self._consume_count(count)
            )
        predicate = limit
        return self._parse_from_here(
            "parse_prefix", convert, lambda: self._consume_while(predicate)
        )

    def _parse_from_here(
        self, operation: str, convert: Converter[V], consume: Callable[[], None]
    ) -> V:
        with telemetry.span(
            f"text::{operation}",
            logger_name=self.logger_name,
            component="buffer",
            metadata={"buffer": self.name, "cursor": self.cursor},
        ) as handle:
            with self.checkpointed() as start:
                consume()
                text = self._text_from(start.cursor)
                value, error = _try_convert(convert, text)
                if error is not None:
                    self.rewind(start)
                    handle.rewound(start.cursor)
                handle.add_metadata("consumed", len(text))

        if error is not None:
            telemetry.record_event(
                "text.parse_failed",
                level="debug",
                data={"buffer": self.name, "operation": operation, "text": text},
                logger_name=self.logger_name,
            )
            raise TextParseError(text, converter=_converter_name(convert)) from error
        return value  # type: ignore[return-value]

    def _text_from(self, start: int) -> str:
        lo, hi = self._window_range(start, self.cursor)
        return self._text.text(lo, hi)

    # The consume helpers below run while a checkpoint at or before the
    # current cursor is live, so every character they read is retained.

    def _drain(self) -> None:
        while self._advance() is not END:
            pass

    def _consume_count(self, count: int) -> None:
        for _ in range(count):
            if self._advance() is END:
                return

    def _consume_while(self, predicate: Callable[[str], bool]) -> None:
        while True:
            before = self._cursor
            item = self._advance()
            if item is END:
                return
            if not predicate(item):
                self._cursor = before
                return


__all__ = ["TextStreamBuffer", "Converter", "PrefixLimit"]
