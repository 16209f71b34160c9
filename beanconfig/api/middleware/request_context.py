from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from beanconfig.core.observability.metrics import inc_http

log = logging.getLogger("beanconfig.request")

ACTOR_HEADER = "x-config-user"


def _json_log(event: str, **fields):
    msg = {"event": event, **fields}
    log.info("%s", msg)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Adds:
      request.state.request_id
      request.state.actor        (opaque label from X-Config-User, may be None)
      response header: X-Request-Id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
        request.state.actor = request.headers.get(ACTOR_HEADER) or None

        start = time.time()
        resp = await call_next(request)
        dur = time.time() - start

        resp.headers["X-Request-Id"] = rid
        inc_http(request.method, request.url.path, resp.status_code, dur)

        if request.url.path.startswith("/api/"):
            _json_log(
                "request",
                request_id=rid,
                method=request.method,
                path=request.url.path,
                status_code=resp.status_code,
                duration_ms=int(dur * 1000),
                actor=request.state.actor,
            )
        return resp
