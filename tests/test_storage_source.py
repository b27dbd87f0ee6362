from __future__ import annotations

import io

import pytest

from rewind_stream.buffer import END, DequeStorage, FusedSource, TextStorage, iter_chunks


def test_deque_storage_drain_and_get() -> None:
    storage: DequeStorage[int] = DequeStorage()
    for value in range(5):
        storage.push(value)

    storage.drain_front(2)

    assert len(storage) == 3
    assert storage.get(0) == 2
    assert storage.items(1, 3) == [3, 4]

    storage.drain_front(10)
    assert len(storage) == 0


def test_text_storage_interleaves_push_and_drain() -> None:
    storage = TextStorage()
    for ch in "hello":
        storage.push(ch)

    assert storage.get(4) == "o"
    storage.drain_front(2)
    storage.push("!")

    assert storage.text(0) == "llo!"
    assert storage.get(3) == "!"
    assert storage.items(0, 2) == ["l", "l"]

    storage.drain_front(4)
    assert len(storage) == 0
    assert storage.text(0) == ""


def test_text_storage_rejects_multi_character_items() -> None:
    storage = TextStorage()

    with pytest.raises(ValueError):
        storage.push("ab")


def test_fused_source_stops_calling_after_end() -> None:
    calls = []

    def generate():
        calls.append("start")
        yield 1

    source = FusedSource(generate())

    assert source.pull() == 1
    assert source.pull() is END
    assert source.exhausted
    assert source.pull() is END
    assert source.pulls == 2
    assert calls == ["start"]


def test_iter_chunks_binary_and_text() -> None:
    assert list(iter_chunks(io.BytesIO(b"abc").read, 2)) == [97, 98, 99]
    assert "".join(iter_chunks(io.StringIO("xyz").read, 1)) == "xyz"

    with pytest.raises(ValueError):
        list(iter_chunks(io.StringIO("").read, 0))
