from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.events import ReferenceNotInSchema
from beanconfig.core.schema.models import Schema


class BeanContent(BaseModel):
    # property name -> values; an empty list deletes the property on merge
    properties: Dict[str, List[str]] = Field(default_factory=dict)
    # reference name -> instance ids of the declared target schema
    references: Dict[str, List[str]] = Field(default_factory=dict)

    def to_bean(self, bean_id: BeanId, schema: Optional[Schema]) -> Bean:
        bean = Bean.create(bean_id)
        for name, values in self.properties.items():
            bean.set_property(name, values)
        for name, ids in self.references.items():
            decl = schema.declaration(name) if schema is not None else None
            if decl is None or not hasattr(decl, "schema_name"):
                raise ReferenceNotInSchema(name)
            bean.set_references(name, [BeanId(i, decl.schema_name) for i in ids])
        return bean


class BeanIn(BeanContent):
    id: str
    schema_name: Optional[str] = None


class RefOut(BaseModel):
    id: str
    schema_name: str


class BeanOut(BaseModel):
    id: str
    schema_name: str
    singleton: bool = False
    properties: Dict[str, List[str]] = Field(default_factory=dict)
    references: Dict[str, List[RefOut]] = Field(default_factory=dict)

    @classmethod
    def from_bean(cls, bean: Bean) -> "BeanOut":
        return cls(**bean.to_dict())


class BeanListOut(BaseModel):
    schema_name: str
    beans: List[BeanOut]


class WriteResult(BaseModel):
    status: str
    ids: List[str]


class ErrorOut(BaseModel):
    module: str
    code: int
    message: str
    request_id: Optional[str] = None
