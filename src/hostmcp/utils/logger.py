# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging utilities for hostmcp.

hostmcp runs inside a host application that usually owns the console, so the
default setup attaches exactly one handler to the root logger and leaves any
handlers the host installed alone.  Structured JSON output is serialised with
orjson unless the caller supplies its own serializer.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import os
from typing import Any, ClassVar, Final

import orjson


RESET: Final[str] = "\033[0m"

DEBUG_COLOR: Final[str] = "\033[36m"
INFO_COLOR: Final[str] = "\033[32m"
WARNING_COLOR: Final[str] = "\033[33m"
ERROR_COLOR: Final[str] = "\033[1;31m"
CRITICAL_COLOR: Final[str] = "\033[1;35m"
LOGGER_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "hostmcp"
ENV_LOG_LEVEL: Final[str] = "HOSTMCP_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "HOSTMCP_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]

# Attributes every LogRecord carries; anything else came in through ``extra``.
_BUILTIN_RECORD_KEYS: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "context", "taskName"}


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level and logger name with ANSI codes."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": DEBUG_COLOR,
        "INFO": INFO_COLOR,
        "WARNING": WARNING_COLOR,
        "ERROR": ERROR_COLOR,
        "CRITICAL": CRITICAL_COLOR,
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname, name = record.levelname, record.name
        record.levelname = f"{self.LEVEL_COLORS.get(levelname, '')}{levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = levelname, name


class HostMCPHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """StreamHandler installed (and later recognised) by :func:`setup_logger`."""


class StructuredJSONFormatter(logging.Formatter):
    """Serialize log records into one JSON object per line."""

    def __init__(self, serializer: JsonSerializer | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _orjson_serializer

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context: dict[str, Any] = {}
        supplied = record.__dict__.get("context")
        if isinstance(supplied, dict):
            context.update(supplied)
        for key, value in record.__dict__.items():
            if key not in _BUILTIN_RECORD_KEYS and key not in context:
                context[key] = value
        if context:
            payload["context"] = context

        return self._serializer(payload)


def _orjson_serializer(payload: dict[str, Any]) -> str:
    return orjson.dumps(payload, default=str).decode("utf-8")


def _has_hostmcp_handler(root: logging.Logger) -> bool:
    return any(isinstance(handler, HostMCPHandler) for handler in root.handlers)


def _read_bool_env(key: str) -> bool:
    value = os.getenv(key)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL)
        if not level:
            return logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Configure the root logger.

    Args:
        level: Log level. Falls back to ``HOSTMCP_LOG_LEVEL`` then ``INFO``.
        use_json: Emit JSON lines. Defaults to ``HOSTMCP_LOG_JSON``.
        use_color: Colour plain-text output. Defaults to on unless ``NO_COLOR``
            is set or JSON output is selected.
        json_serializer: Replaces the orjson serializer for JSON output.
        fmt: Format string for plain-text logging.
        datefmt: Date format for both plain and JSON output.
        force: Replace a handler installed by an earlier call.
    """
    root = logging.getLogger()

    if _has_hostmcp_handler(root):
        if not force:
            return
        for handler in list(root.handlers):
            if isinstance(handler, HostMCPHandler):
                root.removeHandler(handler)
                handler.close()

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    resolved_use_json = use_json if use_json is not None else _read_bool_env(ENV_LOG_JSON)
    if use_color is not None:
        resolved_use_color = use_color
    elif os.getenv(ENV_NO_COLOR):
        resolved_use_color = False
    else:
        resolved_use_color = not resolved_use_json

    formatter: logging.Formatter
    if resolved_use_json:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=datefmt)
    elif resolved_use_color:
        formatter = ColoredFormatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)
    else:
        formatter = logging.Formatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)

    handler = HostMCPHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger, configuring the root logger on first use."""
    if not _has_hostmcp_handler(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "HostMCPHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
