"""One-shot item sources and the fused wrapper the buffer pulls from."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


class _EndOfStream:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END"


END: Any = _EndOfStream()


class FusedSource(Generic[T]):
    """Wraps an iterable so that end-of-stream is sticky.

    After the wrapped iterator raises ``StopIteration`` once, ``pull`` keeps
    returning ``END`` without calling into it again.
    """

    __slots__ = ("_iterator", "_exhausted", "pulls")

    def __init__(self, source: Iterable[T]) -> None:
        self._iterator: Optional[Iterator[T]] = iter(source)
        self._exhausted = False
        self.pulls = 0

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def pull(self) -> T:
        if self._iterator is None:
            return END
        self.pulls += 1
        try:
            return next(self._iterator)
        except StopIteration:
            self._exhausted = True
            self._iterator = None
            return END


def iter_chunks(read: Callable[[int], Any], size: int = 4096) -> Iterator[Any]:
    """Yield single items from a ``read(size)`` callable until it returns empty.

    Text readers yield one-character strings; binary readers yield ints, the
    same as iterating a ``bytes`` object.
    """

    if size <= 0:
        raise ValueError("size must be positive")
    while True:
        chunk = read(size)
        if not chunk:
            return
        yield from chunk


__all__ = ["END", "FusedSource", "iter_chunks"]
