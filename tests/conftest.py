from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from structlog.testing import CapturingLogger

from greeter.config import get_settings
from greeter.main import create_app
from greeter.observability.logging import AppLogger


def logged_lines(captured: CapturingLogger) -> list[tuple[str, str]]:
    return [(call.method_name, call.args[0]) for call in captured.calls]


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOST", "PORT", "LOG_LEVEL", "LOG_JSON", "MAX_BODY_BYTES"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    structlog.contextvars.clear_contextvars()
    get_settings.cache_clear()


@pytest.fixture
def captured() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def app_logger(captured: CapturingLogger) -> AppLogger:
    return AppLogger(captured)


@pytest.fixture
def app(app_logger: AppLogger) -> FastAPI:
    return create_app(app_logger)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    # Unhandled errors are still answered by the 500 handler before being re-raised.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def lines(captured: CapturingLogger):
    """Returns a callable listing ``(method, message)`` for every line logged so far."""

    return lambda: logged_lines(captured)
