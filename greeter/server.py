from __future__ import annotations

from typing import Callable

import uvicorn

from greeter.config import Settings
from greeter.main import create_app
from greeter.observability.logging import AppLogger
from greeter.observability.monitor import Monitor


class _StartupAwareServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, on_started: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_started = on_started

    async def startup(self, sockets=None) -> None:
        # uvicorn calls sys.exit from here when it cannot bind.
        await super().startup(sockets=sockets)
        if self.started:
            self._on_started()


class AppServer:
    """Runs the greeter app on uvicorn until ``stop`` is called or a signal arrives."""

    def __init__(self, settings: Settings, logger: AppLogger) -> None:
        self.settings = settings
        self.logger = logger
        self.app = create_app(logger, settings)
        self._monitor: Monitor | None = None
        # log_config=None keeps the handlers installed by configure_logging.
        config = uvicorn.Config(
            self.app,
            host=settings.host,
            port=settings.port,
            log_config=None,
            access_log=False,
        )
        self._server = _StartupAwareServer(config, self._listening)

    @property
    def started(self) -> bool:
        return bool(self._server.started)

    def bound_port(self) -> int:
        for server in self._server.servers:
            for sock in server.sockets:
                return sock.getsockname()[1]
        return self.settings.port

    def _listening(self) -> None:
        if self._monitor is not None:
            self._monitor.info("Example app listening on port %d", self.bound_port())

    def run(self) -> None:
        self._monitor = monitor = self.logger.monitor("server", "run")
        try:
            self._server.run()
        except BaseException as exc:
            monitor.error("server failed: %s", repr(exc))
            raise
        if not self.started:
            monitor.error("server failed: did not start")
            return
        monitor.done("stopped")

    def stop(self) -> None:
        self._server.should_exit = True
