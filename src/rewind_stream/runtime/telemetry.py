"""telelog wiring for the rewind window.

Buffers log through per-buffer loggers named ``rewind_stream.<buffer>``.
Events raised from the read path are checked against the configured level
with ``enabled`` before any payload is built, so a quiet configuration costs
one comparison per eviction.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "REWIND_STREAM_"
ROOT_LOGGER = "rewind_stream"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True, slots=True)
class TelemetrySettings:
    """What the buffers need from logging: a level, and where records go."""

    level: str = "WARNING"
    console: bool = True
    log_file: str = ""

    def __post_init__(self) -> None:
        level = self.level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level '{self.level}'.")
        object.__setattr__(self, "level", level)

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        console = os.getenv(f"{ENV_PREFIX}CONSOLE", "1").lower()
        return cls(
            level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "WARNING"),
            console=console in {"1", "true", "yes", "on"},
            log_file=os.getenv(f"{ENV_PREFIX}LOG_FILE", ""),
        )

    def build(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.log_file:
            config.with_file_output(self.log_file)
        return config


_LOGGER_CACHE: MutableMapping[str, Any] = {}
_settings = TelemetrySettings()
_config: Optional[Any] = None


def configure(settings: Optional[TelemetrySettings] = None) -> TelemetrySettings:
    """Adopt ``settings`` (or the environment) and drop cached loggers."""

    global _settings, _config
    _settings = settings or TelemetrySettings.from_env()
    _config = _settings.build()
    _LOGGER_CACHE.clear()
    return _settings


def settings() -> TelemetrySettings:
    return _settings


def enabled(level: str) -> bool:
    return LEVELS.index(level.upper()) >= LEVELS.index(_settings.level)


def buffer_logger_name(buffer_name: str) -> str:
    return f"{ROOT_LOGGER}.{buffer_name}"


def get_logger(name: Optional[str] = None) -> Any:
    """Return a cached ``telelog.Logger``; ``name`` defaults to the root."""

    global _config
    logger_name = name or ROOT_LOGGER
    if logger_name not in _LOGGER_CACHE:
        if _config is None:
            _config = _settings.build()
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _config)
    return _LOGGER_CACHE[logger_name]


def _emit(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    with_data = getattr(log, f"{name}_with", None)
    if with_data is not None:
        with_data(message, [(key, str(value)) for key, value in payload.items()])
    else:
        getattr(log, name)(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit ``event::<name>`` unless ``level`` is below the configured one."""

    if not enabled(level):
        return
    payload = {"event": name, **(data or {})}
    _emit(get_logger(logger_name), level, f"event::{name}", payload)


@dataclass
class SpanHandle:
    logger: Any
    span_name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = str(value)

    def rewound(self, cursor: int) -> None:
        if enabled("debug"):
            _emit(
                self.logger,
                "debug",
                "span::rewound",
                {"span": self.span_name, "cursor": cursor, **self.metadata},
            )


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block with ``logger.profile``, tracked under ``component``.

    ``metadata`` is attached as logger context for the duration of the block.
    An exception leaving the block is logged at debug level and re-raised;
    failed speculative reads are routine, not errors.
    """

    log = get_logger(logger_name)
    handle = SpanHandle(logger=log, span_name=name, component=component)
    for key, value in (metadata or {}).items():
        handle.add_metadata(key, value)
        log.add_context(key, handle.metadata[key])
    context_keys = list(handle.metadata)

    with ExitStack() as stack:
        if component:
            stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            if enabled("debug"):
                _emit(log, "debug", "span::raised", {"span": name, "reason": exc})
            raise
        finally:
            for key in context_keys:
                log.remove_context(key)


configure()

__all__ = [
    "TelemetrySettings",
    "SpanHandle",
    "buffer_logger_name",
    "configure",
    "enabled",
    "get_logger",
    "record_event",
    "settings",
    "span",
]
