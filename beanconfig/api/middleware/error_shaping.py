from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from beanconfig.core.events import (
    CFG101,
    CFG302,
    CFG303,
    CFG304,
    CFG307,
    CFG308,
    AbortError,
)

log = logging.getLogger("beanconfig.errors")

_NOT_FOUND = {CFG101, CFG304}
_CONFLICT = {CFG302, CFG303, CFG307, CFG308}


def status_for(code: int) -> int:
    if code in _NOT_FOUND:
        return 404
    if code in _CONFLICT:
        return 409
    return 422


def _request_id(request: Request):
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


async def abort_error_handler(request: Request, exc: AbortError) -> JSONResponse:
    """Structured event body for every rejected admin operation."""
    payload = exc.event.to_dict()
    rid = _request_id(request)
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status_for(exc.event.code), content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
