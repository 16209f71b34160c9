from __future__ import annotations

from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from beanconfig.core.events import MissingId

if TYPE_CHECKING:
    from beanconfig.core.schema.models import Schema


class BeanId:
    """
    Composite key (instance_id, schema_name).

    `bean` is a resolution cache only: it never takes part in equality,
    hashing, repr or copies.
    """

    __slots__ = ("_instance_id", "_schema_name", "_singleton", "bean")

    def __init__(self, instance_id: str, schema_name: str, singleton: bool = False):
        if instance_id is None or schema_name is None:
            raise ValueError("instance_id and schema_name are required")
        self._instance_id = instance_id
        self._schema_name = schema_name
        self._singleton = singleton
        self.bean: Optional[Bean] = None

    @classmethod
    def create(cls, instance_id: str, schema_name: str) -> "BeanId":
        if not instance_id:
            raise MissingId()
        return cls(instance_id, schema_name)

    @classmethod
    def create_singleton(cls, instance_id: str, schema_name: str) -> "BeanId":
        return cls(instance_id, schema_name, singleton=True)

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def schema_name(self) -> str:
        return self._schema_name

    @property
    def is_singleton(self) -> bool:
        return self._singleton

    def unresolved(self) -> "BeanId":
        return BeanId(self._instance_id, self._schema_name, self._singleton)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BeanId):
            return NotImplemented
        return self._instance_id == other._instance_id and self._schema_name == other._schema_name

    def __hash__(self) -> int:
        return hash((self._instance_id, self._schema_name))

    def __str__(self) -> str:
        return f"{self._schema_name}@{self._instance_id}"

    def __repr__(self) -> str:
        return f"BeanId({self._instance_id!r}, {self._schema_name!r})"

    def __copy__(self) -> "BeanId":
        return self.unresolved()

    def __deepcopy__(self, memo) -> "BeanId":
        return self.unresolved()


class Bean:
    """
    A configuration instance: identity, properties and references.

    All values are plain strings; the bean knows nothing about types or
    multiplicity. That is the schema's job, and the schema is attached by
    the admin core, never by storage.
    """

    def __init__(self, bean_id: BeanId):
        if bean_id is None:
            raise ValueError("bean_id is required")
        self.id = bean_id
        self.schema: Optional[Schema] = None
        self._properties: Dict[str, List[str]] = {}
        self._references: Dict[str, List[BeanId]] = {}

    @classmethod
    def create(cls, bean_id: BeanId) -> "Bean":
        return cls(bean_id)

    # ---- properties ----

    def property_names(self) -> List[str]:
        return sorted(self._properties.keys())

    def add_property(self, name: str, value) -> None:
        values = [value] if isinstance(value, str) else list(value)
        self._properties.setdefault(name, []).extend(values)

    def set_property(self, name: str, value) -> None:
        if value is None:
            self._properties[name] = []
        elif isinstance(value, str):
            self._properties[name] = [value]
        else:
            self._properties[name] = list(value)

    def get_values(self, name: str) -> Optional[List[str]]:
        values = self._properties.get(name)
        if values is None:
            return None
        return list(values)

    def get_single_value(self, name: str) -> Optional[str]:
        values = self._properties.get(name)
        if not values:
            return None
        return values[0]

    def has_property(self, name: str) -> bool:
        return name in self._properties

    # ---- references ----

    def reference_names(self) -> List[str]:
        return sorted(self._references.keys())

    def add_reference(self, name: str, ref) -> None:
        refs = [ref] if isinstance(ref, BeanId) else list(ref)
        self._references.setdefault(name, []).extend(refs)

    def set_reference(self, name: str, ref: Optional[BeanId]) -> None:
        self._references[name] = [] if ref is None else [ref]

    def set_references(self, name: str, refs: Optional[Iterable[BeanId]]) -> None:
        self._references[name] = list(refs or [])

    def get_reference(self, name: str) -> Optional[List[BeanId]]:
        return self._references.get(name)

    def get_first_reference(self, name: str) -> Optional[BeanId]:
        refs = self._references.get(name)
        if not refs:
            return None
        return refs[0]

    def references(self) -> List[BeanId]:
        out: List[BeanId] = []
        for refs in self._references.values():
            out.extend(refs)
        return out

    def has_reference(self, name: str) -> bool:
        return name in self._references

    # ---- whole bean ----

    def remove(self, name: str) -> None:
        if name in self._properties:
            del self._properties[name]
        elif name in self._references:
            del self._references[name]

    def clear(self) -> None:
        self._properties.clear()
        self._references.clear()

    def copy(self) -> "Bean":
        """Detached copy: same values, no schema, no resolved references."""
        b = Bean(self.id.unresolved())
        b._properties = {k: list(v) for k, v in self._properties.items()}
        b._references = {k: [r.unresolved() for r in v] for k, v in self._references.items()}
        return b

    def same_content(self, other: "Bean") -> bool:
        if self.id != other.id:
            return False
        if {k: sorted(v) for k, v in self._properties.items()} != {
            k: sorted(v) for k, v in other._properties.items()
        }:
            return False
        mine = {k: sorted(str(r) for r in v) for k, v in self._references.items()}
        theirs = {k: sorted(str(r) for r in v) for k, v in other._references.items()}
        return mine == theirs

    def to_dict(self) -> Dict:
        return {
            "id": self.id.instance_id,
            "schema_name": self.id.schema_name,
            "singleton": self.id.is_singleton,
            "properties": {k: list(v) for k, v in sorted(self._properties.items())},
            "references": {
                k: [{"id": r.instance_id, "schema_name": r.schema_name} for r in v]
                for k, v in sorted(self._references.items())
            },
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bean):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        schema = self.schema.name if self.schema is not None else None
        return (
            f"Bean(id={self.id}, schema={schema}, properties={self._properties}, "
            f"references={ {k: [str(r) for r in v] for k, v in self._references.items()} })"
        )

    def __deepcopy__(self, memo) -> "Bean":
        b = self.copy()
        b.schema = self.schema
        return b


def unique_index(beans: Iterable[Bean]) -> Dict[BeanId, Bean]:
    return {b.id: b for b in beans}
