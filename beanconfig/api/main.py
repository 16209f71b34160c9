from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from beanconfig.api.deps import build_admin
from beanconfig.api.endpoints import beans, health, schemas
from beanconfig.api.endpoints import metrics_export
from beanconfig.api.middleware.error_shaping import SafeErrorMiddleware, abort_error_handler
from beanconfig.api.middleware.request_context import RequestContextMiddleware
from beanconfig.core.admin.context import AdminContext
from beanconfig.core.config import AdminConfig
from beanconfig.core.events import AbortError


def create_app(config: Optional[AdminConfig] = None, admin: Optional[AdminContext] = None) -> FastAPI:
    config = config or AdminConfig.from_env()

    app = FastAPI(
        title="beanconfig admin API",
        version="0.1.0",
    )
    app.state.config = config
    app.state.admin = admin or build_admin(config)

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
    #   SafeErrorMiddleware -> RequestContext -> handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SafeErrorMiddleware)

    app.add_exception_handler(AbortError, abort_error_handler)

    app.include_router(health.router)
    app.include_router(metrics_export.router)
    app.include_router(beans.router, prefix="/api/v1")
    app.include_router(schemas.router, prefix="/api/v1")
    return app


app = create_app()
