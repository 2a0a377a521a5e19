from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from greeter.config import LOG_LEVELS
from greeter.observability.formatting import RequestInfo, format_message, format_response
from greeter.observability.monitor import Monitor


_CONFIGURED = False
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def render_line(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> str:
    """Render ``<timestamp> [<level>] <message>``; other keys are dropped."""

    return f"{event_dict.get('timestamp', '')} [{event_dict.get('level', '')}] {event_dict.get('event', '')}"


def _level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    if level.lower() not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")
    return logging.getLevelName(level.upper())


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _console_handler(json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer() if json_output else render_line,
            foreign_pre_chain=_shared_processors(),
        )
    )
    return handler


def configure_logging(level: str | int = "debug", json_output: bool = False) -> None:
    """Send structlog events and stdlib records (uvicorn included) to stdout.

    Only the first call has an effect. Unknown level names raise ValueError
    before anything is changed.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    threshold = _level_number(level)
    structlog.configure(
        processors=[*_shared_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = _console_handler(json_output)
    logging.getLogger().handlers = [handler]
    logging.getLogger().setLevel(threshold)
    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(threshold)

    _CONFIGURED = True


class AppLogger:
    """Logger handed to route handlers, middleware and monitors.

    Each call formats its arguments printf-style and writes exactly one line.
    Keyword arguments are passed through as structured fields, which only the
    JSON renderer shows.
    """

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger("greeter")

    def _emit(self, method: str, args: tuple[Any, ...], fields: dict[str, Any]) -> None:
        getattr(self._logger, method)(format_message(*args), **fields)

    def debug(self, *args: Any, **fields: Any) -> None:
        self._emit("debug", args, fields)

    def info(self, *args: Any, **fields: Any) -> None:
        self._emit("info", args, fields)

    def warn(self, *args: Any, **fields: Any) -> None:
        self._emit("warning", args, fields)

    def error(self, *args: Any, **fields: Any) -> None:
        self._emit("error", args, fields)

    def log_response(self, request: RequestInfo, status: int, payload: Any) -> str:
        line = format_response(request, status, payload)
        self.info("%s", line, status_code=status)
        return line

    def monitor(self, module_name: str, function_name: str) -> Monitor:
        return Monitor(self, module_name, function_name)
