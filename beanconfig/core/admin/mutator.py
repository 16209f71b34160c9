from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Mapping, Set

from beanconfig.core.admin.attacher import attach_schema
from beanconfig.core.admin.resolver import fetch_reference
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.events import BeanNotFound, MissingReference
from beanconfig.core.schema.models import Schema
from beanconfig.core.spi import BeanStore

log = logging.getLogger("beanconfig.admin")


def find_matches(beans: Iterable[Bean], target: BeanId) -> List[Bean]:
    """Every bean object in the graph with id `target`, in discovery order."""
    out: List[Bean] = []
    queue = deque(beans)
    seen: Set[int] = set()
    while queue:
        bean = queue.popleft()
        if id(bean) in seen:
            continue
        seen.add(id(bean))
        if bean.id == target:
            out.append(bean)
        for ref in bean.references():
            if ref.bean is not None and id(ref.bean) not in seen:
                queue.append(ref.bean)
    return out


def _clear_mutable(bean: Bean) -> None:
    """Set semantics: drop everything except values of immutable declarations."""
    schema = bean.schema
    for name in bean.property_names() + bean.reference_names():
        decl = schema.declaration(name) if schema is not None else None
        if decl is None or not decl.immutable:
            bean.remove(name)


class GraphMutator:
    """
    Applies set/merge to the in-memory graph of beans affected by a write,
    so the validation engine sees the graph as it would look after commit.

    set   = clear the target, then merge the new data in
    merge = keep unnamed properties, overwrite named ones, drop named ones
            with an empty value list; references are replaced per name
    """

    def __init__(self, store: BeanStore):
        self._store = store

    def set(self, beans: Iterable[Bean], schemas: Mapping[str, Schema]) -> List[Bean]:
        return self._mutate(list(beans), schemas, replace=True)

    def merge(self, beans: Iterable[Bean], schemas: Mapping[str, Schema]) -> List[Bean]:
        return self._mutate(list(beans), schemas, replace=False)

    def _mutate(self, beans: List[Bean], schemas: Mapping[str, Schema], *, replace: bool) -> List[Bean]:
        validate: List[Bean] = []
        seen: Set[int] = set()
        for bean in beans:
            for b in self._store.get_beans_to_validate(bean):
                if id(b) not in seen:
                    seen.add(id(b))
                    validate.append(b)
        attach_schema(validate, schemas)

        # ids already present in memory resolve to the objects being mutated,
        # so references between beans of the same call see the new state
        resolved: Dict[BeanId, Bean] = {}
        targets: Dict[BeanId, List[Bean]] = {}
        for bean in beans:
            matches = find_matches(validate, bean.id)
            if not matches:
                raise BeanNotFound(bean.id)
            targets[bean.id] = matches
            resolved.setdefault(bean.id, matches[0])

        for bean in beans:
            for target in targets[bean.id]:
                if replace:
                    _clear_mutable(target)
                self._apply(target, bean, resolved, schemas)

        # every copy of an id carries the same mutations; hand one per id to validation
        unique: Dict[BeanId, Bean] = {}
        for b in validate:
            unique.setdefault(b.id, b)

        log.debug(
            "%s applied to %d bean(s); %d bean(s) to validate",
            "set" if replace else "merge",
            len(beans),
            len(unique),
        )
        return list(unique.values())

    def _apply(
        self,
        target: Bean,
        source: Bean,
        resolved: Dict[BeanId, Bean],
        schemas: Mapping[str, Schema],
    ) -> None:
        for name in source.property_names():
            values = source.get_values(name)
            if not values:
                target.remove(name)
            else:
                target.set_property(name, values)

        for name in source.reference_names():
            refs = source.get_reference(name) or []
            if not refs:
                target.remove(name)
                continue
            bound: List[BeanId] = []
            missing: List[BeanId] = []
            for ref in refs:
                ref_bean = resolved.get(ref)
                if ref_bean is None:
                    ref_bean = fetch_reference(self._store, ref, schemas)
                    if ref_bean is None:
                        missing.append(ref)
                        continue
                    attach_schema(ref_bean, schemas)
                    resolved[ref] = ref_bean
                rid = ref.unresolved()
                rid.bean = ref_bean
                bound.append(rid)
            if missing:
                raise MissingReference(source.id, missing)
            target.set_references(name, bound)
