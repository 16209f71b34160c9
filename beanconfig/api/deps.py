from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from beanconfig.core.admin.context import AdminContext
from beanconfig.core.config import AdminConfig
from beanconfig.core.runtime.context import RuntimeContext
from beanconfig.providers.memory_store import InMemoryBeanStore
from beanconfig.providers.schema_registry import InMemorySchemaRegistry
from beanconfig.providers.validation import BeanValidationEngine

log = logging.getLogger("beanconfig.admin")


def build_admin(config: AdminConfig) -> AdminContext:
    """One AdminContext with the in-memory providers, wired from config."""
    registry = InMemorySchemaRegistry()
    if config.schema_dir is not None:
        registry.load_dir(config.schema_dir)
    store = InMemoryBeanStore(registry, validate_depth=config.validate_depth)
    log.info(
        "admin context env=%s schemas=%d validate_depth=%d audit=%s",
        config.env,
        len(registry.get_schemas()),
        config.validate_depth,
        config.audit_enabled,
    )
    return AdminContext(
        store,
        registry,
        BeanValidationEngine(),
        audit_enabled=config.audit_enabled,
        audit_path=config.audit_path,
    )


def get_admin(request: Request) -> AdminContext:
    return request.app.state.admin


def get_runtime(request: Request) -> RuntimeContext:
    return RuntimeContext(request.app.state.admin)


def get_actor(request: Request) -> Optional[str]:
    return getattr(request.state, "actor", None)
