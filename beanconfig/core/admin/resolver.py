from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Mapping, Optional, Set

from beanconfig.core.admin.attacher import attach_schema
from beanconfig.core.beans.models import Bean, BeanId, unique_index
from beanconfig.core.events import BeanNotFound, MissingReference, SchemaNotFound
from beanconfig.core.schema.models import Schema
from beanconfig.core.spi import BeanStore

log = logging.getLogger("beanconfig.admin")


class ReferenceResolver:
    """
    Materialises reference ids into Bean objects.

    Beans supplied in the same operation always win over stored beans with
    the same id, so one call can create or update a bean together with its
    reference targets.
    """

    def __init__(self, store: BeanStore):
        self._store = store

    def resolve_for_validation(self, beans: Iterable[Bean], schemas: Mapping[str, Schema]) -> None:
        beans = list(beans)
        batch = unique_index(beans)
        fetched: Dict[BeanId, Bean] = {}

        for bean in beans:
            for name in bean.reference_names():
                missing: List[BeanId] = []
                for ref in bean.get_reference(name) or []:
                    target = batch.get(ref) or fetched.get(ref)
                    if target is None:
                        target = fetch_reference(self._store, ref, schemas)
                        if target is None:
                            missing.append(ref)
                            continue
                        attach_schema(target, schemas)
                        fetched[ref] = target
                    ref.bean = target
                if missing:
                    raise MissingReference(bean.id, missing)

        log.debug("resolved references for %d bean(s), %d fetched from store", len(beans), len(fetched))

    def resolve_singletons(self, bean: Bean, schemas: Mapping[str, Schema]) -> None:
        """
        Bind every singleton reference declared by the schemas in the graph
        rooted at `bean`, replacing whatever the caller supplied. The store
        creates a singleton instance on first access.
        """
        singletons: Dict[str, Bean] = {}
        queue = deque([bean])
        seen: Set[int] = set()

        while queue:
            current = queue.popleft()
            if id(current) in seen:
                continue
            seen.add(id(current))

            schema = current.schema or schemas.get(current.id.schema_name)
            if schema is None:
                raise SchemaNotFound(current.id.schema_name)

            for decl in schema.singleton_references():
                singleton = singletons.get(decl.schema_name)
                if singleton is None:
                    target_schema = schemas.get(decl.schema_name)
                    if target_schema is None:
                        raise SchemaNotFound(decl.schema_name)
                    singleton = self._store.get_singleton(decl.schema_name)
                    singleton.schema = target_schema
                    singletons[decl.schema_name] = singleton

                ref = BeanId.create_singleton(singleton.id.instance_id, singleton.id.schema_name)
                ref.bean = singleton
                current.set_reference(decl.name, ref)

            for ref in current.references():
                if ref.bean is not None and id(ref.bean) not in seen:
                    queue.append(ref.bean)


def fetch_reference(store: BeanStore, ref: BeanId, schemas: Mapping[str, Schema]) -> Optional[Bean]:
    """
    Stored bean for `ref`, or None if there is none. An id naming the
    instance of a singleton schema yields that singleton, which the store
    creates on first access.
    """
    target_schema = schemas.get(ref.schema_name)
    try:
        if target_schema is not None and target_schema.singleton and ref.instance_id == ref.schema_name:
            return store.get_singleton(ref.schema_name)
        return store.get_lazy(ref)
    except BeanNotFound:
        return None
