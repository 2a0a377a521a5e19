from __future__ import annotations

from fastapi import APIRouter, Depends

from greeter.api.dependencies import get_app_logger, get_request_info
from greeter.observability.formatting import RequestInfo
from greeter.observability.logging import AppLogger


router = APIRouter(tags=["hello"])


@router.get("/")
async def hello_world(
    logger: AppLogger = Depends(get_app_logger),
    request_info: RequestInfo = Depends(get_request_info),
) -> dict[str, str]:
    payload = {"msg": "Hello World!"}
    logger.log_response(request_info, 200, payload)
    return payload
