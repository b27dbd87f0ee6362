"""Containers that hold the retained window of items."""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Deque, Generic, List, Protocol, TypeVar

T = TypeVar("T")


class WindowStorage(Protocol[T]):
    """Minimal container contract the rewind window relies on."""

    def __len__(self) -> int:
        ...

    def drain_front(self, n: int) -> None:
        """Drop ``n`` items from the oldest end, or everything if fewer remain."""
        ...

    def push(self, item: T) -> None:
        """Append ``item`` at the live edge."""
        ...

    def get(self, index: int) -> T:
        """Return the item at ``index`` counted from the oldest retained item."""
        ...

    def items(self, start: int, end: int) -> List[T]:
        """Return a copy of ``[start, end)``."""
        ...


class DequeStorage(Generic[T]):
    """Generic window backed by ``collections.deque``."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: Deque[T] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def drain_front(self, n: int) -> None:
        if n >= len(self._items):
            self._items.clear()
            return
        for _ in range(n):
            self._items.popleft()

    def push(self, item: T) -> None:
        self._items.append(item)

    def get(self, index: int) -> T:
        return self._items[index]

    def items(self, start: int, end: int) -> List[T]:
        return list(islice(self._items, start, end))


class TextStorage:
    """Window stored as one contiguous string.

    Pushed characters collect in a pending list and are joined into the
    string the first time a slice or a drain needs it, so appending one
    character at a time stays linear overall.
    """

    __slots__ = ("_text", "_pending")

    def __init__(self) -> None:
        self._text = ""
        self._pending: List[str] = []

    def __len__(self) -> int:
        return len(self._text) + len(self._pending)

    def _flush(self) -> str:
        if self._pending:
            self._text += "".join(self._pending)
            self._pending.clear()
        return self._text

    def drain_front(self, n: int) -> None:
        if n >= len(self):
            self._text = ""
            self._pending.clear()
            return
        self._text = self._flush()[n:]

    def push(self, item: str) -> None:
        if len(item) != 1:
            raise ValueError(f"TextStorage holds single characters, got {item!r}")
        self._pending.append(item)

    def get(self, index: int) -> str:
        if index < len(self._text):
            return self._text[index]
        return self._pending[index - len(self._text)]

    def items(self, start: int, end: int) -> List[str]:
        return list(self.text(start, end))

    def text(self, start: int, end: int | None = None) -> str:
        return self._flush()[start:end]


__all__ = ["WindowStorage", "DequeStorage", "TextStorage"]
