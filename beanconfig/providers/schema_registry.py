from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from beanconfig.core.events import SchemaNotFound
from beanconfig.core.schema.models import (
    Schema,
    SchemaProperty,
    SchemaPropertyList,
    SchemaPropertyRef,
    SchemaPropertyRefList,
    SchemaPropertyRefMap,
)

log = logging.getLogger("beanconfig.schemas")

_SUFFIXES = (".yaml", ".yml", ".json")


class PropertyDoc(BaseModel):
    name: str
    type: str = "str"
    description: str = ""
    default: Optional[str] = None
    defaults: List[str] = Field(default_factory=list)
    immutable: bool = False
    enum: List[str] = Field(default_factory=list)
    # declared last: the name shadows the builtin inside the class body
    list: bool = False


class ReferenceDoc(BaseModel):
    name: str
    schema_name: str = Field(alias="schema")
    description: str = ""
    list: bool = False
    map: bool = False
    singleton: bool = False
    immutable: bool = False


class SchemaDoc(BaseModel):
    """On-disk form of one schema (YAML or JSON)."""

    name: str
    type: str = ""
    description: str = ""
    singleton: bool = False
    properties: List[PropertyDoc] = Field(default_factory=list)
    references: List[ReferenceDoc] = Field(default_factory=list)

    @classmethod
    def from_schema(cls, schema: Schema) -> "SchemaDoc":
        props: List[PropertyDoc] = []
        refs: List[ReferenceDoc] = []
        for d in schema.declarations:
            if isinstance(d, SchemaProperty):
                props.append(
                    PropertyDoc(
                        name=d.name,
                        type=d.type,
                        description=d.description,
                        default=d.default,
                        immutable=d.immutable,
                        enum=list(d.enum_values),
                    )
                )
            elif isinstance(d, SchemaPropertyList):
                props.append(
                    PropertyDoc(
                        name=d.name,
                        type=d.type,
                        description=d.description,
                        list=True,
                        defaults=list(d.defaults),
                        immutable=d.immutable,
                        enum=list(d.enum_values),
                    )
                )
            else:
                refs.append(
                    ReferenceDoc(
                        name=d.name,
                        schema=d.schema_name,
                        description=d.description,
                        list=isinstance(d, SchemaPropertyRefList),
                        map=isinstance(d, SchemaPropertyRefMap),
                        singleton=getattr(d, "singleton", False),
                        immutable=d.immutable,
                    )
                )
        return cls(
            name=schema.name,
            type=schema.type,
            description=schema.description,
            singleton=schema.singleton,
            properties=props,
            references=refs,
        )

    def to_schema(self) -> Schema:
        decls: List[Any] = []
        for p in self.properties:
            if p.list:
                decls.append(
                    SchemaPropertyList(
                        name=p.name,
                        type=p.type,
                        description=p.description,
                        defaults=tuple(p.defaults),
                        immutable=p.immutable,
                        enum_values=tuple(p.enum),
                    )
                )
            else:
                decls.append(
                    SchemaProperty(
                        name=p.name,
                        type=p.type,
                        description=p.description,
                        default=p.default,
                        immutable=p.immutable,
                        enum_values=tuple(p.enum),
                    )
                )
        for r in self.references:
            if r.map:
                decls.append(
                    SchemaPropertyRefMap(
                        name=r.name,
                        schema_name=r.schema_name,
                        description=r.description,
                        immutable=r.immutable,
                    )
                )
            elif r.list:
                decls.append(
                    SchemaPropertyRefList(
                        name=r.name,
                        schema_name=r.schema_name,
                        description=r.description,
                        immutable=r.immutable,
                    )
                )
            else:
                decls.append(
                    SchemaPropertyRef(
                        name=r.name,
                        schema_name=r.schema_name,
                        description=r.description,
                        immutable=r.immutable,
                        singleton=r.singleton,
                    )
                )
        return Schema(
            name=self.name,
            type=self.type or self.name,
            description=self.description,
            singleton=self.singleton,
            declarations=tuple(decls),
        )


def parse_schema_file(path: Path) -> List[Schema]:
    """
    One file holds a single schema document, a list of them, or a mapping
    with a `schemas` list. Raises ValueError on anything else.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if isinstance(data, dict) and "schemas" in data:
        data = data["schemas"]
    docs = data if isinstance(data, list) else [data]

    out: List[Schema] = []
    for doc in docs:
        if not isinstance(doc, dict):
            raise ValueError(f"{path}: schema document must be a mapping, got {type(doc).__name__}")
        out.append(SchemaDoc.model_validate(doc).to_schema())
    return out


class InMemorySchemaRegistry:
    def __init__(self, schemas: Optional[List[Schema]] = None):
        self._schemas: Dict[str, Schema] = {}
        for s in schemas or []:
            self._schemas[s.name] = s

    def get_schemas(self) -> Dict[str, Schema]:
        return dict(self._schemas)

    def get_schema(self, name: str) -> Schema:
        schema = self._schemas.get(name)
        if schema is None:
            raise SchemaNotFound(name)
        return schema

    def register_schema(self, *schemas: Schema) -> None:
        for s in schemas:
            if s.name in self._schemas:
                log.info("replacing schema %s", s.name)
            self._schemas[s.name] = s

    def remove_schema(self, name: str) -> None:
        if name not in self._schemas:
            raise SchemaNotFound(name)
        del self._schemas[name]

    def load_dir(self, directory: Union[str, Path]) -> List[str]:
        """
        Register every schema file under `directory`. Files that fail to
        parse are logged and skipped. Returns the registered schema names.
        """
        directory = Path(directory)
        if not directory.is_dir():
            log.warning("schema directory %s does not exist", directory)
            return []

        loaded: List[str] = []
        for p in sorted(directory.iterdir()):
            if p.suffix not in _SUFFIXES:
                continue
            try:
                schemas = parse_schema_file(p)
            except (OSError, ValueError, yaml.YAMLError, ValidationError) as exc:
                log.warning("Skipping invalid schema file %s: %s", p, exc)
                continue
            self.register_schema(*schemas)
            loaded.extend(s.name for s in schemas)

        log.info("Loaded %d schema(s) from %s", len(loaded), directory)
        return loaded
