from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from greeter.api.dependencies import get_app_logger, get_request_info
from greeter.api.hello import router as hello_router
from greeter.config import Settings, get_settings
from greeter.observability.formatting import to_json
from greeter.observability.logging import AppLogger
from greeter.observability.middleware import RequestLoggingMiddleware


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # Runs outside RequestLoggingMiddleware, so the request id comes from RequestInfo.
    info = get_request_info(request)
    get_app_logger(request).error(
        'error: "%s" for request: %s %s with body: %s',
        str(exc),
        info.method,
        info.path,
        to_json(info.body),
        request_id=info.request_id,
    )
    headers = {"X-Request-ID": info.request_id} if info.request_id else None
    return JSONResponse(status_code=500, content={"code": 500, "message": str(exc)}, headers=headers)


def create_app(logger: AppLogger | None = None, settings: Settings | None = None) -> FastAPI:
    logger = logger if logger is not None else AppLogger()
    settings = settings if settings is not None else get_settings()

    app = FastAPI(title="Greeter", version="0.1.0")
    app.state.logger = logger
    app.add_middleware(RequestLoggingMiddleware, logger=logger, max_body_bytes=settings.max_body_bytes)
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(hello_router)
    return app
