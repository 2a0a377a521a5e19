from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from time import perf_counter
from typing import TYPE_CHECKING, Any

from greeter.observability.formatting import format_message, safe_string, to_json


if TYPE_CHECKING:
    from greeter.observability.logging import AppLogger


def _new_correlation_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Monitor:
    """Times one operation and tags every line it logs with a correlation id.

    Creating a monitor logs START. ``debug``/``info``/``warn`` log progress,
    ``error`` or ``done`` log the end together with the elapsed milliseconds.
    Terminal calls are not guarded: calling ``done`` twice logs two END lines.
    """

    logger: AppLogger
    module_name: str
    function_name: str
    start_time: float = field(default_factory=perf_counter)
    correlation_id: str = field(default_factory=_new_correlation_id)

    def __post_init__(self) -> None:
        self._log("info", f"START {self.function_name}")

    @property
    def _prefix(self) -> str:
        return f"[{self.module_name}] (-{self.correlation_id}-)"

    def _log(self, method: str, text: str, **fields: Any) -> None:
        getattr(self.logger, method)(
            "%s %s",
            self._prefix,
            text,
            correlation_id=self.correlation_id,
            module=self.module_name,
            function=self.function_name,
            **fields,
        )

    def elapsed_ms(self) -> int:
        return max(0, int((perf_counter() - self.start_time) * 1000))

    def debug(self, *args: Any) -> None:
        self._log("debug", f"{self.function_name} : {format_message(*args)}")

    def info(self, *args: Any) -> None:
        self._log("info", f"{self.function_name} : {format_message(*args)}")

    def warn(self, *args: Any) -> None:
        self._log("warn", f"{self.function_name} : {format_message(*args)}")

    def error(self, *args: Any) -> None:
        duration = self.elapsed_ms()
        message = to_json(format_message(*args))
        self._log(
            "error",
            f"ERROR END {self.function_name} took {duration} ms : {message}",
            duration_ms=duration,
        )

    def done(self, *args: Any) -> None:
        duration = self.elapsed_ms()
        message = safe_string(format_message(*args))
        self._log(
            "info",
            f"END {self.function_name} took {duration} ms : {message}",
            duration_ms=duration,
        )
