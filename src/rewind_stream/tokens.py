"""Token-stream capability and a few backtracking helpers built on it.

Helpers treat a ``None`` from ``read_next`` as end-of-stream, so sources that
yield ``None`` as a real item should be read through the iterator protocol
instead.
"""

from __future__ import annotations

from typing import (
    Callable,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
)

from .buffer import Checkpoint

T = TypeVar("T")
R = TypeVar("R")
S = TypeVar("S", bound="TokenStream")


class TokenStream(Protocol[T]):
    """What a parser needs from a rewindable item source."""

    def read_next(self) -> Optional[T]:
        ...

    def checkpoint(self) -> Checkpoint:
        ...

    def rewind(self, to: Checkpoint) -> None:
        ...

    def is_at(self, checkpoint: Checkpoint) -> bool:
        ...

    def slice(self, start: Checkpoint, end: Checkpoint) -> Sequence[T]:
        ...


def peek(stream: TokenStream[T]) -> Optional[T]:
    """Return the next item without consuming it."""

    mark = stream.checkpoint()
    try:
        item = stream.read_next()
        stream.rewind(mark)
        return item
    finally:
        mark.release()


def optional(stream: S, parser: Callable[[S], Optional[R]]) -> Optional[R]:
    """Run ``parser``; if it returns ``None`` undo everything it consumed."""

    mark = stream.checkpoint()
    try:
        result = parser(stream)
        if result is None:
            stream.rewind(mark)
        return result
    finally:
        mark.release()


def match_items(stream: TokenStream[T], expected: Iterable[T]) -> bool:
    """Consume ``expected`` if the stream continues with exactly those items."""

    mark = stream.checkpoint()
    try:
        for want in expected:
            got = stream.read_next()
            if got is None or got != want:
                stream.rewind(mark)
                return False
        return True
    finally:
        mark.release()


def take(stream: TokenStream[T], n: int) -> List[T]:
    """Consume up to ``n`` items."""

    if n < 0:
        raise ValueError("n must be non-negative")
    items: List[T] = []
    for _ in range(n):
        item = stream.read_next()
        if item is None:
            break
        items.append(item)
    return items


def take_while(stream: TokenStream[T], predicate: Callable[[T], bool]) -> List[T]:
    """Consume items while ``predicate`` holds; the first rejected item stays."""

    items: List[T] = []
    while True:
        mark = stream.checkpoint()
        try:
            item = stream.read_next()
            if item is None:
                return items
            if not predicate(item):
                stream.rewind(mark)
                return items
            items.append(item)
        finally:
            mark.release()


def skip_while(stream: TokenStream[T], predicate: Callable[[T], bool]) -> int:
    return len(take_while(stream, predicate))


def sep_by(
    stream: S,
    item: Callable[[S], Optional[R]],
    separator: Callable[[S], bool],
) -> List[R]:
    """Parse ``item (separator item)*``.

    A separator that is not followed by an item is left unconsumed.
    """

    first = optional(stream, item)
    if first is None:
        return []
    results = [first]

    def _next(s: S) -> Optional[R]:
        if not separator(s):
            return None
        return item(s)

    while True:
        following = optional(stream, _next)
        if following is None:
            return results
        results.append(following)


__all__ = [
    "TokenStream",
    "peek",
    "optional",
    "match_items",
    "take",
    "take_while",
    "skip_while",
    "sep_by",
]
