"""Rewind window, checkpoints, and the storage they share."""

from .checkpoints import Checkpoint, CheckpointRegistry
from .errors import (
    CheckpointReleasedError,
    OutOfWindowError,
    RegistryCorruptionError,
    TextParseError,
)
from .source import END, FusedSource, iter_chunks
from .storage import DequeStorage, TextStorage, WindowStorage
from .stream import Attempt, StreamBuffer, WindowView
from .text import TextStreamBuffer

__all__ = [
    "StreamBuffer",
    "TextStreamBuffer",
    "WindowView",
    "Attempt",
    "Checkpoint",
    "CheckpointRegistry",
    "WindowStorage",
    "DequeStorage",
    "TextStorage",
    "FusedSource",
    "END",
    "iter_chunks",
    "OutOfWindowError",
    "CheckpointReleasedError",
    "RegistryCorruptionError",
    "TextParseError",
]
