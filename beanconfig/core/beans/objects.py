from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.conversion import DEFAULT_CONVERSION
from beanconfig.core.schema.models import (
    SchemaProperty,
    SchemaPropertyList,
    SchemaPropertyRef,
    SchemaPropertyRefList,
    SchemaPropertyRefMap,
)
from beanconfig.core.spi import TypeConverter


def to_object(bean: Bean, conversion: TypeConverter = DEFAULT_CONVERSION) -> Dict[str, Any]:
    """
    Typed view of a schema-attached bean.

    Properties are converted to Python values (schema defaults stand in for
    absent ones), resolved references become nested dicts. A reference back
    to a bean already on the current path is emitted as its instance id.
    """
    return _convert(bean, conversion, set())


def _convert(bean: Bean, conversion: TypeConverter, path: Set[BeanId]) -> Dict[str, Any]:
    schema = bean.schema
    if schema is None:
        raise ValueError(f"schema must be attached before converting {bean.id}")

    out: Dict[str, Any] = {}
    if not schema.singleton:
        out["id"] = bean.id.instance_id

    for prop in schema.get(SchemaProperty):
        value = bean.get_single_value(prop.name)
        if value is None:
            value = prop.default
        out[prop.name] = None if value is None else conversion.convert(value, prop.type, prop.enum_values)

    for prop in schema.get(SchemaPropertyList):
        values = bean.get_values(prop.name)
        if values is None:
            values = list(prop.defaults)
        out[prop.name] = [conversion.convert(v, prop.type, prop.enum_values) for v in values]

    path = path | {bean.id}
    for ref in schema.get(SchemaPropertyRef):
        out[ref.name] = _ref(bean.get_first_reference(ref.name), conversion, path)

    for ref in schema.get(SchemaPropertyRefList):
        items: List[Any] = []
        for rid in bean.get_reference(ref.name) or []:
            item = _ref(rid, conversion, path)
            if item is not None:
                items.append(item)
        out[ref.name] = items

    for ref in schema.get(SchemaPropertyRefMap):
        entries: Dict[str, Any] = {}
        for rid in bean.get_reference(ref.name) or []:
            item = _ref(rid, conversion, path)
            if item is not None:
                entries[rid.instance_id] = item
        out[ref.name] = entries

    return out


def _ref(rid: Optional[BeanId], conversion: TypeConverter, path: Set[BeanId]) -> Any:
    if rid is None:
        return None
    if rid in path or rid.bean is None or rid.bean.schema is None:
        return rid.instance_id
    return _convert(rid.bean, conversion, path)
