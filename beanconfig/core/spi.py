"""
Collaborator contracts consumed by the admin core.

Implementations are passed to AdminContext explicitly; nothing here is
looked up globally. Reference implementations live in beanconfig.providers.
"""
from __future__ import annotations

from typing import Any, Collection, Dict, Iterable, Protocol, Sequence, Set

from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.schema.models import Schema


class BeanStore(Protocol):
    """
    Durable owner of beans. Each public write call must behave as a single
    transactional unit; the admin core never commits partially on its own.
    """

    def get(self, bean_id: BeanId) -> Bean:
        ...

    def get_lazy(self, bean_id: BeanId) -> Bean:
        ...

    def get_eager(self, bean_id: BeanId) -> Bean:
        ...

    def list(self, schema_name: str) -> Dict[BeanId, Bean]:
        ...

    def create(self, beans: Collection[Bean]) -> None:
        ...

    def set(self, beans: Collection[Bean]) -> None:
        ...

    def merge(self, beans: Collection[Bean]) -> None:
        ...

    def delete(self, bean_id: BeanId) -> None:
        ...

    def delete_many(self, schema_name: str, instance_ids: Iterable[str]) -> None:
        ...

    def get_singleton(self, schema_name: str) -> Bean:
        ...

    def get_beans_to_validate(self, bean: Bean) -> Set[Bean]:
        ...


class SchemaRegistry(Protocol):
    def get_schemas(self) -> Dict[str, Schema]:
        ...

    def get_schema(self, name: str) -> Schema:
        ...

    def register_schema(self, *schemas: Schema) -> None:
        ...

    def remove_schema(self, name: str) -> None:
        ...


class ValidationEngine(Protocol):
    def validate(self, beans: Collection[Bean]) -> None:
        ...


class TypeConverter(Protocol):
    def convert(self, value: str, type_name: str, enum_values: Sequence[str] = ()) -> Any:
        ...

    def to_string(self, value: Any, type_name: str) -> str:
        ...
