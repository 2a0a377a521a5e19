from __future__ import annotations

import json
import uuid
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse

from greeter.observability.formatting import RequestInfo, to_json
from greeter.observability.logging import AppLogger


DEFAULT_MAX_BODY_BYTES = 100 * 1024


class BodyTooLarge(Exception):
    pass


def parse_body(raw: bytes, content_type: str | None) -> Any:
    """Decode a request body the way a JSON body parser would.

    Empty or non-JSON bodies become ``{}``; JSON that fails to decode is kept
    as text so it still shows up in the logs.
    """

    if not raw or not content_type or "json" not in content_type.lower():
        return {}
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


async def read_body(receive: Callable[..., Any], headers: Headers, limit: int) -> bytes:
    """Buffer the whole request body, raising BodyTooLarge past ``limit`` bytes."""

    declared = headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise BodyTooLarge(int(declared))

    chunks: list[bytes] = []
    size = 0
    more_body = True
    while more_body:
        message = await receive()
        if message.get("type") != "http.request":
            break
        chunk = message.get("body", b"")
        size += len(chunk)
        if size > limit:
            raise BodyTooLarge(size)
        chunks.append(chunk)
        more_body = bool(message.get("more_body", False))
    return b"".join(chunks)


class RequestLoggingMiddleware:
    """Logs every request, stores its RequestInfo and tags it with a request id.

    Bodies larger than ``max_body_bytes`` are answered with 413 before the
    app sees the request.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        logger: AppLogger,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self.app = app
        self.logger = logger
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        method = scope.get("method")
        headers = Headers(scope=scope)

        async def send_wrapper(message: dict[str, Any]) -> None:
            if message.get("type") == "http.response.start":
                MutableHeaders(scope=message)["X-Request-ID"] = request_id
            await send(message)

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=path,
            method=method,
        )
        try:
            try:
                raw = await read_body(receive, headers, self.max_body_bytes)
            except BodyTooLarge as exc:
                self.logger.warn(
                    "%s %s body too large: %d bytes, limit %d",
                    method,
                    path,
                    exc.args[0],
                    self.max_body_bytes,
                )
                response = JSONResponse(
                    status_code=413,
                    content={"code": 413, "message": "request entity too large"},
                )
                await response(scope, receive, send_wrapper)
                return

            replayed = False

            async def receive_wrapper() -> dict[str, Any]:
                nonlocal replayed
                if not replayed:
                    replayed = True
                    return {"type": "http.request", "body": raw, "more_body": False}
                return await receive()

            info = RequestInfo(
                method=method,
                path=path,
                body=parse_body(raw, headers.get("content-type")),
                request_id=request_id,
            )
            scope.setdefault("state", {})["request_info"] = info

            self.logger.info("%s %s body=%s", method, path, to_json(info.body))
            await self.app(scope, receive_wrapper, send_wrapper)
        finally:
            structlog.contextvars.clear_contextvars()
