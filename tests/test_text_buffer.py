from __future__ import annotations

import io
from decimal import Decimal

import pytest

from rewind_stream.buffer import TextParseError, TextStreamBuffer
from rewind_stream.tokens import take_while


def make_text(text: str) -> TextStreamBuffer:
    return TextStreamBuffer(iter(text))


def rest(buffer: TextStreamBuffer) -> str:
    return "".join(buffer)


def test_parse_remaining_then_exhausted() -> None:
    buffer = make_text("123")

    assert buffer.parse_remaining() == 123
    pulls = buffer.source_pulls

    with pytest.raises(TextParseError) as info:
        buffer.parse_remaining()

    assert info.value.text == ""
    assert buffer.source_pulls == pulls
    assert buffer.live_checkpoints == 0


def test_parse_remaining_failure_restores_cursor() -> None:
    buffer = make_text("12a")

    with pytest.raises(TextParseError) as info:
        buffer.parse_remaining()

    assert info.value.text == "12a"
    assert isinstance(info.value.__cause__, ValueError)
    assert buffer.cursor == 0
    assert rest(buffer) == "12a"


def test_retry_with_other_converter_after_failure() -> None:
    buffer = make_text("abc")

    with pytest.raises(TextParseError):
        buffer.parse_remaining(int)

    assert buffer.parse_remaining(str) == "abc"


def test_parse_remaining_with_decimal() -> None:
    assert make_text("1.25").parse_remaining(Decimal) == Decimal("1.25")

    buffer = make_text("x")
    with pytest.raises(TextParseError) as info:
        buffer.parse_remaining(Decimal)
    assert info.value.converter == "Decimal"


def test_parse_remaining_from_middle() -> None:
    buffer = make_text("ab3.5")
    buffer.read_next()
    buffer.read_next()

    assert buffer.parse_remaining(float) == 3.5


def test_parse_slice_between_checkpoints() -> None:
    buffer = make_text("123abc")
    start = buffer.checkpoint()
    take_while(buffer, str.isdigit)
    end = buffer.checkpoint()

    assert buffer.slice_text(start, end) == "123"
    assert buffer.slice(start, end) == ["1", "2", "3"]
    assert buffer.parse_slice(start, end) == 123
    start.release()
    end.release()

    assert rest(buffer) == "abc"


def test_parse_slice_failure_keeps_cursor() -> None:
    buffer = make_text("ab")
    start = buffer.checkpoint()
    buffer.read_next()
    end = buffer.checkpoint()

    with pytest.raises(TextParseError):
        buffer.parse_slice(start, end)

    assert buffer.cursor == 1
    start.release()
    end.release()


def test_parse_prefix_count() -> None:
    buffer = make_text("123abc")

    assert buffer.parse_prefix(3) == 123
    assert rest(buffer) == "abc"


def test_parse_prefix_count_shorter_than_stream() -> None:
    buffer = make_text("123ab+=")

    assert buffer.parse_prefix(2) == 12
    assert rest(buffer) == "3ab+="


def test_parse_prefix_count_past_end() -> None:
    buffer = make_text("12")

    assert buffer.parse_prefix(10) == 12
    assert buffer.read_next() is None


def test_parse_prefix_predicate() -> None:
    buffer = make_text("123abc")

    assert buffer.parse_prefix(str.isdigit) == 123
    assert rest(buffer) == "abc"


def test_parse_prefix_failure_restores_cursor() -> None:
    buffer = make_text("ab1")

    with pytest.raises(TextParseError):
        buffer.parse_prefix(2)

    assert buffer.cursor == 0
    assert buffer.parse_prefix(str.isalpha, str) == "ab"
    assert buffer.parse_prefix(1) == 1


def test_parse_prefix_rejects_bad_limits() -> None:
    buffer = make_text("1")

    with pytest.raises(ValueError):
        buffer.parse_prefix(-1)
    with pytest.raises(TypeError):
        buffer.parse_prefix("1")  # type: ignore[arg-type]
    assert buffer.cursor == 0


def test_from_reader_reads_in_chunks() -> None:
    buffer = TextStreamBuffer.from_reader(io.StringIO("42 rest"), chunk_size=2)

    assert buffer.parse_prefix(str.isdigit) == 42
    assert buffer.read_next() == " "
    assert rest(buffer) == "rest"


def test_multi_character_items_are_flattened() -> None:
    buffer = TextStreamBuffer(["12\n", "34\n"])
    start = buffer.checkpoint()

    assert rest(buffer) == "12\n34\n"
    buffer.rewind(start)
    assert buffer.parse_prefix(str.isdigit) == 12
    start.release()


def test_text_window_evicts_like_generic_buffer() -> None:
    buffer = make_text("abcdef")
    mark = buffer.checkpoint()
    buffer.read_next()
    buffer.read_next()
    mark.release()

    assert buffer.window().length == 2
    assert buffer.read_next() == "c"
    assert buffer.window().length == 0
