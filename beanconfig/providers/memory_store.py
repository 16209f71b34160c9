from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Set

from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.events import (
    BeanAlreadyExists,
    BeanNotFound,
    MissingReference,
    ReferentialIntegrityViolation,
    SchemaNotFound,
    SingletonCreation,
    SingletonRemoval,
)
from beanconfig.core.schema.models import Schema
from beanconfig.core.spi import SchemaRegistry

log = logging.getLogger("beanconfig.store")


class InMemoryBeanStore:
    """
    Reference BeanStore kept in process memory.

    Stored beans are detached copies (no schema, unresolved references) and
    are never handed out directly. Every public write builds a new mapping
    and swaps it in only when all checks passed, so a failed call leaves the
    store exactly as it was.
    """

    def __init__(self, schemas: SchemaRegistry, validate_depth: int = 2):
        self._schemas = schemas
        self.validate_depth = validate_depth
        self._beans: Dict[BeanId, Bean] = {}
        self._lock = threading.RLock()

    # ---- reads ----

    def get(self, bean_id: BeanId) -> Bean:
        return self.get_eager(bean_id)

    def get_lazy(self, bean_id: BeanId) -> Bean:
        with self._lock:
            return self._stored(self._beans, bean_id).copy()

    def get_eager(self, bean_id: BeanId) -> Bean:
        with self._lock:
            root = self._stored(self._beans, bean_id).copy()
            _expand(self._beans, [root], depth=None)
            return root

    def list(self, schema_name: str) -> Dict[BeanId, Bean]:
        with self._lock:
            return {
                bean_id: bean.copy()
                for bean_id, bean in sorted(self._beans.items(), key=lambda kv: kv[0].instance_id)
                if bean_id.schema_name == schema_name
            }

    def get_singleton(self, schema_name: str) -> Bean:
        with self._lock:
            schema = self._schema(schema_name)
            if not schema.singleton:
                raise ValueError(f"schema {schema_name} does not declare a singleton")
            bean_id = _singleton_id(schema_name)
            bean = self._beans.get(bean_id)
            if bean is None:
                work = dict(self._beans)
                bean = _new_singleton(work, schema_name)
                self._beans = work
            return bean.copy()

    def get_beans_to_validate(self, bean: Bean) -> Set[Bean]:
        """
        Fresh copies of `bean` and every bean that references it, directly
        or through other beans, each expanded `validate_depth` hops. Copies
        share one object per id, so a change to one is seen from every
        referrer.
        """
        with self._lock:
            self._stored(self._beans, bean.id)
            referrers = _referrers(self._beans)
            ids: List[BeanId] = []
            queue = deque([bean.id])
            seen: Set[BeanId] = set()
            while queue:
                current = queue.popleft()
                if current in seen:
                    continue
                seen.add(current)
                ids.append(current)
                queue.extend(referrers.get(current, ()))

            roots = [self._beans[i].copy() for i in ids]
            _expand(self._beans, roots, depth=self.validate_depth)
            log.debug("beans to validate for %s: %s", bean.id, [str(i) for i in ids])
            return set(roots)

    # ---- writes ----

    def create(self, beans: Collection[Bean]) -> None:
        with self._lock:
            schemas = self._schemas.get_schemas()
            work = dict(self._beans)
            for bean in beans:
                schema = _schema_of(schemas, bean.id.schema_name)
                if schema.singleton:
                    raise SingletonCreation(bean.id)
                if bean.id in work:
                    raise BeanAlreadyExists(bean.id)
                work[bean.id] = bean.copy()
            _check_references(work, beans, schemas)
            self._beans = work
            log.debug("created %s", [str(b.id) for b in beans])

    def set(self, beans: Collection[Bean]) -> None:
        with self._lock:
            schemas = self._schemas.get_schemas()
            work = dict(self._beans)
            for bean in beans:
                stored = self._stored(work, bean.id)
                replaced = bean.copy()
                _keep_immutable(stored, replaced, schemas.get(bean.id.schema_name))
                work[bean.id] = replaced
            _check_references(work, beans, schemas)
            self._beans = work
            log.debug("set %s", [str(b.id) for b in beans])

    def merge(self, beans: Collection[Bean]) -> None:
        with self._lock:
            schemas = self._schemas.get_schemas()
            work = dict(self._beans)
            for bean in beans:
                merged = self._stored(work, bean.id).copy()
                for name in bean.property_names():
                    values = bean.get_values(name)
                    if values:
                        merged.set_property(name, values)
                    else:
                        merged.remove(name)
                for name in bean.reference_names():
                    refs = bean.get_reference(name)
                    if refs:
                        merged.set_references(name, [r.unresolved() for r in refs])
                    else:
                        merged.remove(name)
                work[bean.id] = merged
            _check_references(work, beans, schemas)
            self._beans = work
            log.debug("merged %s", [str(b.id) for b in beans])

    def delete(self, bean_id: BeanId) -> None:
        self._delete([bean_id])

    def delete_many(self, schema_name: str, instance_ids: Iterable[str]) -> None:
        self._delete([BeanId(i, schema_name) for i in instance_ids])

    def _delete(self, ids: List[BeanId]) -> None:
        with self._lock:
            schemas = self._schemas.get_schemas()
            work = dict(self._beans)
            doomed = set(ids)
            for bean_id in ids:
                self._stored(work, bean_id)
                schema = schemas.get(bean_id.schema_name)
                if bean_id.is_singleton or (schema is not None and schema.singleton):
                    raise SingletonRemoval(bean_id)

            referenced: List[BeanId] = []
            for referrer_id, bean in work.items():
                if referrer_id in doomed:
                    continue
                for ref in bean.references():
                    if ref in doomed and ref not in referenced:
                        referenced.append(ref)
            if referenced:
                raise ReferentialIntegrityViolation(referenced)

            for bean_id in ids:
                work.pop(bean_id, None)
            self._beans = work
            log.debug("deleted %s", [str(i) for i in ids])

    # ---- internals ----

    def _stored(self, beans: Mapping[BeanId, Bean], bean_id: BeanId) -> Bean:
        bean = beans.get(bean_id)
        if bean is None:
            raise BeanNotFound(bean_id)
        return bean

    def _schema(self, schema_name: str) -> Schema:
        return _schema_of(self._schemas.get_schemas(), schema_name)


def _schema_of(schemas: Mapping[str, Schema], schema_name: str) -> Schema:
    schema = schemas.get(schema_name)
    if schema is None:
        raise SchemaNotFound(schema_name)
    return schema


def _singleton_id(schema_name: str) -> BeanId:
    return BeanId.create_singleton(schema_name, schema_name)


def _new_singleton(work: Dict[BeanId, Bean], schema_name: str) -> Bean:
    bean = Bean.create(_singleton_id(schema_name))
    work[bean.id] = bean
    log.info("created singleton %s", bean.id)
    return bean


def _check_references(work: Dict[BeanId, Bean], beans: Iterable[Bean], schemas: Mapping[str, Schema]) -> None:
    for bean in beans:
        missing: List[BeanId] = []
        for ref in bean.references():
            if ref in work:
                continue
            target = schemas.get(ref.schema_name)
            if target is not None and target.singleton and ref.instance_id == ref.schema_name:
                _new_singleton(work, ref.schema_name)
                continue
            missing.append(ref)
        if missing:
            raise MissingReference(bean.id, missing)


def _keep_immutable(stored: Bean, replaced: Bean, schema: Optional[Schema]) -> None:
    if schema is None:
        return
    for decl in schema.declarations:
        if not decl.immutable:
            continue
        if stored.has_property(decl.name) and not replaced.has_property(decl.name):
            replaced.set_property(decl.name, stored.get_values(decl.name))
        elif stored.has_reference(decl.name) and not replaced.has_reference(decl.name):
            replaced.set_references(decl.name, [r.unresolved() for r in stored.get_reference(decl.name) or []])


def _referrers(beans: Mapping[BeanId, Bean]) -> Dict[BeanId, Set[BeanId]]:
    out: Dict[BeanId, Set[BeanId]] = {}
    for bean_id, bean in beans.items():
        for ref in bean.references():
            out.setdefault(ref, set()).add(bean_id)
    return out


def _expand(beans: Mapping[BeanId, Bean], roots: List[Bean], depth: Optional[int]) -> None:
    """
    Bind references of `roots` to copies of stored beans, breadth-first.
    One copy per id; `depth` limits the hops, None expands everything.
    """
    memo: Dict[BeanId, Bean] = {b.id: b for b in roots}
    queue = deque((b, 0) for b in roots)
    while queue:
        bean, level = queue.popleft()
        if depth is not None and level >= depth:
            continue
        for ref in bean.references():
            target = memo.get(ref)
            if target is None:
                stored = beans.get(ref)
                if stored is None:
                    continue
                target = stored.copy()
                memo[ref] = target
                queue.append((target, level + 1))
            ref.bean = target
