"""Rewindable, checkpointed buffering for one-shot item streams."""

from .buffer import (
    Checkpoint,
    CheckpointReleasedError,
    OutOfWindowError,
    RegistryCorruptionError,
    StreamBuffer,
    TextParseError,
    TextStreamBuffer,
)

__all__ = [
    "buffer",
    "runtime",
    "tokens",
    "StreamBuffer",
    "TextStreamBuffer",
    "Checkpoint",
    "OutOfWindowError",
    "CheckpointReleasedError",
    "RegistryCorruptionError",
    "TextParseError",
]

__version__ = "0.1.0"
