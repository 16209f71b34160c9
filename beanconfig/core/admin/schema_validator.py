from __future__ import annotations

from typing import Iterable, List, Optional, Union

from beanconfig.core.beans.models import Bean
from beanconfig.core.conversion import DEFAULT_CONVERSION, ConversionError
from beanconfig.core.events import (
    MissingId,
    PropertyImmutable,
    PropertyNotInSchema,
    ReferenceNotInSchema,
    WrongMultiplicity,
    WrongPropertyType,
)
from beanconfig.core.schema.models import (
    SchemaProperty,
    SchemaPropertyList,
    SchemaPropertyRef,
    SchemaPropertyRefList,
    SchemaPropertyRefMap,
)
from beanconfig.core.spi import TypeConverter


def validate_schema(
    beans: Union[Bean, Iterable[Bean]],
    conversion: TypeConverter = DEFAULT_CONVERSION,
    *,
    initial: bool = False,
) -> None:
    """
    Check that the values of each bean agree with its attached schema.

    `initial` is True on create, where immutable properties may still be
    given their first value. Properties absent from a bean are skipped;
    no defaults are filled in here.
    """
    for bean in [beans] if isinstance(beans, Bean) else beans:
        _validate(bean, conversion, initial)


def _validate(bean: Bean, conversion: TypeConverter, initial: bool) -> None:
    if not bean.id.instance_id:
        raise MissingId()

    schema = bean.schema
    if schema is None:
        raise ValueError(f"schema must be attached before validating {bean.id}")

    declared = schema.property_names()
    for name in bean.property_names():
        if name not in declared:
            raise PropertyNotInSchema(name)

    declared = schema.reference_names()
    for name in bean.reference_names():
        if name not in declared:
            raise ReferenceNotInSchema(name)

    for prop in schema.get(SchemaProperty):
        value = _single_value(bean, prop, initial)
        if value is None:
            continue
        try:
            conversion.convert(value, prop.type, prop.enum_values)
        except ConversionError:
            raise WrongPropertyType(bean.id, prop.name, prop.type, value)

    for prop in schema.get(SchemaPropertyList):
        values = bean.get_values(prop.name)
        if values is None:
            continue
        _check_mutable(bean, prop, initial)
        for value in values:
            try:
                conversion.convert(value, prop.type, prop.enum_values)
            except ConversionError:
                raise WrongPropertyType(bean.id, prop.name, prop.type, value)

    for ref in schema.get(SchemaPropertyRef):
        refs = bean.get_reference(ref.name)
        if refs is None:
            continue
        _check_mutable(bean, ref, initial)
        if len(refs) > 1:
            raise WrongMultiplicity(bean.id, ref.name)

    for ref in schema.get(SchemaPropertyRefList) + schema.get(SchemaPropertyRefMap):
        if bean.get_reference(ref.name) is not None:
            _check_mutable(bean, ref, initial)


def _single_value(bean: Bean, prop: SchemaProperty, initial: bool) -> Optional[str]:
    values: Optional[List[str]] = bean.get_values(prop.name)
    if values is None:
        return None
    _check_mutable(bean, prop, initial)
    if len(values) > 1:
        raise WrongMultiplicity(bean.id, prop.name)
    if not values:
        return None
    return values[0]


def _check_mutable(bean: Bean, decl, initial: bool) -> None:
    if decl.immutable and not initial:
        raise PropertyImmutable(bean.id, decl.name)
