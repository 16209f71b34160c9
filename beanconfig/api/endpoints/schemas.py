from __future__ import annotations

from fastapi import APIRouter, Depends

from beanconfig.api.deps import get_admin
from beanconfig.core.admin.context import AdminContext
from beanconfig.core.events import SchemaNotFound
from beanconfig.providers.schema_registry import SchemaDoc

router = APIRouter(prefix="/schemas", tags=["schemas"])


@router.get("")
def list_schemas(admin: AdminContext = Depends(get_admin)):
    schemas = admin.get_schemas()
    return {"schemas": [SchemaDoc.from_schema(schemas[n]).model_dump(by_alias=True) for n in sorted(schemas)]}


@router.get("/{name}")
def get_schema(name: str, admin: AdminContext = Depends(get_admin)):
    schema = admin.get_schemas().get(name)
    if schema is None:
        raise SchemaNotFound(name)
    return SchemaDoc.from_schema(schema).model_dump(by_alias=True)
