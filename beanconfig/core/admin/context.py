from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from beanconfig.core.admin.attacher import attach_schema
from beanconfig.core.admin.mutator import GraphMutator
from beanconfig.core.admin.resolver import ReferenceResolver
from beanconfig.core.admin.schema_validator import validate_schema
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.config import DEFAULT_AUDIT_PATH
from beanconfig.core.conversion import DEFAULT_CONVERSION
from beanconfig.core.events import AbortError, BeanNotFound, SchemaNotFound
from beanconfig.core.observability.audit import audit_operation
from beanconfig.core.observability.metrics import observe_operation
from beanconfig.core.schema.models import Schema
from beanconfig.core.spi import BeanStore, SchemaRegistry, TypeConverter, ValidationEngine

log = logging.getLogger("beanconfig.admin")

Beans = Union[Bean, Iterable[Bean]]


def _as_list(beans: Beans) -> List[Bean]:
    if isinstance(beans, Bean):
        return [beans]
    return list(beans)


class AdminContext:
    """
    Administrative entry point for beans.

    Every write goes: attach schema -> type/multiplicity check ->
    (reference resolution + semantic validation, when a validation engine
    is configured) -> store. Nothing reaches the store unless every step
    before it passed, and the store is trusted to apply each call as one
    unit.
    """

    def __init__(
        self,
        store: BeanStore,
        schemas: SchemaRegistry,
        validation: Optional[ValidationEngine] = None,
        conversion: Optional[TypeConverter] = None,
        *,
        audit_enabled: bool = False,
        audit_path: Path = DEFAULT_AUDIT_PATH,
    ):
        self.store = store
        self.schemas = schemas
        self.validation = validation
        self.conversion = conversion or DEFAULT_CONVERSION
        self.audit_enabled = audit_enabled
        self.audit_path = audit_path
        self._resolver = ReferenceResolver(store)
        self._mutator = GraphMutator(store)

    # ---- reads ----

    def get_schemas(self) -> Dict[str, Schema]:
        return self.schemas.get_schemas()

    def get(self, bean_id: BeanId) -> Bean:
        """Bean with schema, eager references and singleton references bound."""
        with self._track("get", [bean_id], None, audit=False):
            schemas = self._schemas_for(bean_id.schema_name)
            bean = self.store.get_eager(bean_id)
            attach_schema(bean, schemas)
            self._resolver.resolve_singletons(bean, schemas)
            return bean

    def get_singleton(self, schema_name: str) -> Bean:
        """The one instance of a singleton schema, created on first access."""
        self._schemas_for(schema_name)
        bean = self.store.get_singleton(schema_name)
        return self.get(bean.id)

    def list(self, schema_name: str, instance_ids: Optional[Iterable[str]] = None) -> List[Bean]:
        """
        All beans of `schema_name`, or only `instance_ids` in the order given.
        A requested id that does not exist raises BeanNotFound.
        """
        with self._track("list", [], None, audit=False):
            schemas = self._schemas_for(schema_name)
            stored = self.store.list(schema_name)
            if instance_ids is None:
                beans = list(stored.values())
            else:
                beans = []
                for instance_id in instance_ids:
                    bean_id = BeanId(instance_id, schema_name)
                    bean = stored.get(bean_id)
                    if bean is None:
                        raise BeanNotFound(bean_id)
                    beans.append(bean)
            attach_schema(beans, schemas)
            return beans

    # ---- writes ----

    def create(self, beans: Beans, *, actor: Optional[str] = None) -> None:
        beans = _as_list(beans)
        if not beans:
            return
        with self._track("create", [b.id for b in beans], actor):
            schemas = self.schemas.get_schemas()
            attach_schema(beans, schemas)
            validate_schema(beans, self.conversion, initial=True)
            if self.validation is not None:
                self._resolver.resolve_for_validation(beans, schemas)
                self.validation.validate(beans)
            self.store.create(beans)

    def set(self, beans: Beans, *, actor: Optional[str] = None) -> None:
        """Replace each bean: anything not supplied is gone afterwards."""
        beans = _as_list(beans)
        if not beans:
            return
        with self._track("set", [b.id for b in beans], actor):
            schemas = self.schemas.get_schemas()
            attach_schema(beans, schemas)
            validate_schema(beans, self.conversion)
            if self.validation is not None:
                self.validation.validate(self._mutator.set(beans, schemas))
            self.store.set(beans)

    def merge(self, beans: Beans, *, actor: Optional[str] = None) -> None:
        """
        Partial update: named properties overwrite, empty value lists delete,
        unnamed properties stay. References are replaced per name.
        """
        beans = _as_list(beans)
        if not beans:
            return
        with self._track("merge", [b.id for b in beans], actor):
            schemas = self.schemas.get_schemas()
            attach_schema(beans, schemas)
            validate_schema(beans, self.conversion)
            if self.validation is not None:
                self.validation.validate(self._mutator.merge(beans, schemas))
            self.store.merge(beans)

    def delete(self, bean_id: BeanId, *, actor: Optional[str] = None) -> None:
        with self._track("delete", [bean_id], actor):
            self._schemas_for(bean_id.schema_name)
            self.store.delete(bean_id)

    def delete_many(self, schema_name: str, instance_ids: Iterable[str], *, actor: Optional[str] = None) -> None:
        instance_ids = list(instance_ids)
        if not instance_ids:
            return
        ids = [BeanId(i, schema_name) for i in instance_ids]
        with self._track("delete", ids, actor):
            self._schemas_for(schema_name)
            self.store.delete_many(schema_name, instance_ids)

    # ---- internals ----

    def _schemas_for(self, schema_name: str) -> Dict[str, Schema]:
        schemas = self.schemas.get_schemas()
        if schema_name not in schemas:
            raise SchemaNotFound(schema_name)
        return schemas

    @contextmanager
    def _track(self, operation: str, ids: List[BeanId], actor: Optional[str], *, audit: bool = True) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        except AbortError as e:
            observe_operation(operation, "rejected", time.perf_counter() - start)
            log.info("%s rejected ids=%s: %s", operation, [str(i) for i in ids], e)
            if audit:
                self._audit(operation, "rejected", actor, ids, e.event.code)
            raise
        except Exception:
            observe_operation(operation, "error", time.perf_counter() - start)
            log.exception("%s failed ids=%s", operation, [str(i) for i in ids])
            if audit:
                self._audit(operation, "error", actor, ids, None)
            raise
        observe_operation(operation, "ok", time.perf_counter() - start)
        if audit:
            log.info("%s ok ids=%s actor=%s", operation, [str(i) for i in ids], actor)
            self._audit(operation, "ok", actor, ids, None)

    def _audit(self, operation: str, outcome: str, actor: Optional[str], ids: List[BeanId], code: Optional[int]) -> None:
        if not self.audit_enabled:
            return
        audit_operation(
            operation,
            outcome,
            actor,
            [str(i) for i in ids],
            code=code,
            audit_path=self.audit_path,
        )
