from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from beanconfig.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/health/ready")
def ready(request: Request):
    """Ready once an admin context is wired and its schema registry answers."""
    inc_named("health_ready")
    admin = getattr(request.app.state, "admin", None)
    if admin is None:
        return JSONResponse(status_code=503, content={"status": "not_ready", "problems": ["no_admin_context"]})
    return {"status": "ready", "schemas": len(admin.get_schemas())}
