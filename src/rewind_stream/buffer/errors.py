"""Exceptions raised by the rewind window."""

from __future__ import annotations


class OutOfWindowError(RuntimeError):
    """Raised when a requested range is no longer (or not yet) retained."""

    def __init__(
        self,
        message: str,
        *,
        start: int,
        end: int,
        oldest: int,
        newest: int,
    ) -> None:
        super().__init__(
            f"{message}: requested [{start}, {end}), retained [{oldest}, {newest})"
        )
        self.start = start
        self.end = end
        self.oldest = oldest
        self.newest = newest


class CheckpointReleasedError(RuntimeError):
    """Raised when a released checkpoint is used as a rewind target."""

    def __init__(self, cursor: int) -> None:
        super().__init__(f"Checkpoint at cursor {cursor} has already been released")
        self.cursor = cursor


class RegistryCorruptionError(AssertionError):
    """A release found no matching registry entry.

    This only happens when duplicate/release calls are mismatched, which is a
    bug in the caller, so it is not meant to be caught.
    """

    def __init__(self, cursor: int) -> None:
        super().__init__(f"missing entry for checkpoint at cursor {cursor}")
        self.cursor = cursor


class TextParseError(ValueError):
    """Raised when buffered text cannot be converted to the requested value."""

    def __init__(self, text: str, *, converter: str) -> None:
        super().__init__(f"Could not parse {text!r} with {converter}")
        self.text = text
        self.converter = converter


__all__ = [
    "OutOfWindowError",
    "CheckpointReleasedError",
    "RegistryCorruptionError",
    "TextParseError",
]
