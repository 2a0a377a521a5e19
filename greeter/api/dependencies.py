from __future__ import annotations

from fastapi import Request

from greeter.observability.formatting import RequestInfo
from greeter.observability.logging import AppLogger


def get_app_logger(request: Request) -> AppLogger:
    return request.app.state.logger


def get_request_info(request: Request) -> RequestInfo:
    info = getattr(request.state, "request_info", None)
    if info is None:
        # Middleware not installed; the body is unknown at this point.
        info = RequestInfo(method=request.method, path=request.url.path)
    return info
