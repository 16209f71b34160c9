from beanconfig.core.admin.context import AdminContext
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.events import AbortError
from beanconfig.core.runtime.context import RuntimeContext
from beanconfig.core.schema.models import (
    Schema,
    SchemaProperty,
    SchemaPropertyList,
    SchemaPropertyRef,
    SchemaPropertyRefList,
    SchemaPropertyRefMap,
)

__all__ = [
    "AdminContext",
    "RuntimeContext",
    "AbortError",
    "Bean",
    "BeanId",
    "Schema",
    "SchemaProperty",
    "SchemaPropertyList",
    "SchemaPropertyRef",
    "SchemaPropertyRefList",
    "SchemaPropertyRefMap",
]
