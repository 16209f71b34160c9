from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from beanconfig.api.deps import get_actor, get_admin, get_runtime
from beanconfig.api.schemas.beans import BeanContent, BeanIn, BeanListOut, BeanOut, WriteResult
from beanconfig.core.admin.context import AdminContext
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.events import SchemaNotFound
from beanconfig.core.runtime.context import RuntimeContext

router = APIRouter(prefix="/beans", tags=["beans"])


def _to_bean(admin: AdminContext, schema_name: str, instance_id: str, content: BeanContent) -> Bean:
    schema = admin.get_schemas().get(schema_name)
    if schema is None:
        raise SchemaNotFound(schema_name)
    return content.to_bean(BeanId(instance_id, schema_name), schema)


def _batch(admin: AdminContext, payload: List[BeanIn], schema_name: Optional[str] = None) -> List[Bean]:
    beans: List[Bean] = []
    for item in payload:
        name = schema_name or item.schema_name
        if not name:
            raise HTTPException(status_code=422, detail=f"schema_name is required for bean {item.id!r}")
        beans.append(_to_bean(admin, name, item.id, item))
    return beans


def _result(status: str, beans: List[Bean]) -> WriteResult:
    return WriteResult(status=status, ids=[str(b.id) for b in beans])


# ---- batch (beans of several schemas in one operation) ----


@router.post("", status_code=201, response_model=WriteResult)
def create_batch(
    payload: List[BeanIn],
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    beans = _batch(admin, payload)
    admin.create(beans, actor=actor)
    return _result("created", beans)


@router.put("", response_model=WriteResult)
def set_batch(
    payload: List[BeanIn],
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    beans = _batch(admin, payload)
    admin.set(beans, actor=actor)
    return _result("set", beans)


@router.patch("", response_model=WriteResult)
def merge_batch(
    payload: List[BeanIn],
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    beans = _batch(admin, payload)
    admin.merge(beans, actor=actor)
    return _result("merged", beans)


# ---- one schema ----


@router.get("/{schema_name}", response_model=BeanListOut)
def list_beans(
    schema_name: str,
    ids: Optional[List[str]] = Query(default=None, alias="id"),
    admin: AdminContext = Depends(get_admin),
):
    beans = admin.list(schema_name, ids)
    return BeanListOut(schema_name=schema_name, beans=[BeanOut.from_bean(b) for b in beans])


@router.post("/{schema_name}", status_code=201, response_model=WriteResult)
def create_bean(
    schema_name: str,
    payload: BeanIn,
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    beans = _batch(admin, [payload], schema_name)
    admin.create(beans, actor=actor)
    return _result("created", beans)


@router.delete("/{schema_name}", response_model=WriteResult)
def delete_beans(
    schema_name: str,
    ids: List[str] = Query(alias="id"),
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    admin.delete_many(schema_name, ids, actor=actor)
    return WriteResult(status="deleted", ids=[str(BeanId(i, schema_name)) for i in ids])


@router.get("/{schema_name}/{instance_id}")
def get_bean(
    schema_name: str,
    instance_id: str,
    view: Literal["raw", "object"] = "raw",
    admin: AdminContext = Depends(get_admin),
    runtime: RuntimeContext = Depends(get_runtime),
):
    if view == "object":
        return runtime.get(schema_name, instance_id)
    return BeanOut.from_bean(admin.get(BeanId(instance_id, schema_name))).model_dump()


@router.put("/{schema_name}/{instance_id}", response_model=WriteResult)
def set_bean(
    schema_name: str,
    instance_id: str,
    payload: BeanContent,
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    bean = _to_bean(admin, schema_name, instance_id, payload)
    admin.set(bean, actor=actor)
    return _result("set", [bean])


@router.patch("/{schema_name}/{instance_id}", response_model=WriteResult)
def merge_bean(
    schema_name: str,
    instance_id: str,
    payload: BeanContent,
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    bean = _to_bean(admin, schema_name, instance_id, payload)
    admin.merge(bean, actor=actor)
    return _result("merged", [bean])


@router.delete("/{schema_name}/{instance_id}", response_model=WriteResult)
def delete_bean(
    schema_name: str,
    instance_id: str,
    admin: AdminContext = Depends(get_admin),
    actor: Optional[str] = Depends(get_actor),
):
    bean_id = BeanId(instance_id, schema_name)
    admin.delete(bean_id, actor=actor)
    return WriteResult(status="deleted", ids=[str(bean_id)])
