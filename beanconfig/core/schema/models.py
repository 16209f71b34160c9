from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple, Type, TypeVar, Union


@dataclass(frozen=True)
class SchemaProperty:
    """Single valued property."""

    name: str
    type: str
    description: str = ""
    default: Optional[str] = None
    immutable: bool = False
    enum_values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaPropertyList:
    """Multi valued property."""

    name: str
    type: str
    description: str = ""
    defaults: Tuple[str, ...] = ()
    immutable: bool = False
    enum_values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaPropertyRef:
    """
    Reference to a single bean of `schema_name`.

    A singleton reference points at the one instance of its target schema;
    it is materialised by the admin core and never set by callers.
    """

    name: str
    schema_name: str
    description: str = ""
    immutable: bool = False
    singleton: bool = False


@dataclass(frozen=True)
class SchemaPropertyRefList:
    name: str
    schema_name: str
    description: str = ""
    immutable: bool = False


@dataclass(frozen=True)
class SchemaPropertyRefMap:
    """References to many beans of `schema_name`, viewed as a map keyed by instance id."""

    name: str
    schema_name: str
    description: str = ""
    immutable: bool = False


SchemaDeclaration = Union[
    SchemaProperty, SchemaPropertyList, SchemaPropertyRef, SchemaPropertyRefList, SchemaPropertyRefMap
]
D = TypeVar(
    "D", SchemaProperty, SchemaPropertyList, SchemaPropertyRef, SchemaPropertyRefList, SchemaPropertyRefMap
)

_PROPERTY_KINDS = (SchemaProperty, SchemaPropertyList)
_REFERENCE_KINDS = (SchemaPropertyRef, SchemaPropertyRefList, SchemaPropertyRefMap)


@dataclass(frozen=True)
class Schema:
    name: str
    type: str = ""
    description: str = ""
    singleton: bool = False
    declarations: Tuple[SchemaDeclaration, ...] = field(default_factory=tuple)

    def get(self, kind: Type[D], name: Optional[str] = None):
        """All declarations of `kind`, or the one named `name` (None if absent)."""
        found: List[D] = [d for d in self.declarations if type(d) is kind]
        if name is None:
            return found
        for d in found:
            if d.name == name:
                return d
        return None

    def declaration(self, name: str) -> Optional[SchemaDeclaration]:
        for d in self.declarations:
            if d.name == name:
                return d
        return None

    def property_names(self) -> Set[str]:
        return {d.name for d in self.declarations if isinstance(d, _PROPERTY_KINDS)}

    def reference_names(self) -> Set[str]:
        return {d.name for d in self.declarations if isinstance(d, _REFERENCE_KINDS)}

    def singleton_references(self) -> List[SchemaPropertyRef]:
        return [d for d in self.get(SchemaPropertyRef) if d.singleton]

    def referenced_schema_names(self) -> Set[str]:
        return {d.schema_name for d in self.declarations if isinstance(d, _REFERENCE_KINDS)}
