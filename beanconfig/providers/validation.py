from __future__ import annotations

import logging
from typing import Any, Callable, Collection, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from beanconfig.core.beans.models import Bean
from beanconfig.core.beans.objects import to_object
from beanconfig.core.conversion import DEFAULT_CONVERSION
from beanconfig.core.events import ValidationFailed
from beanconfig.core.spi import TypeConverter

log = logging.getLogger("beanconfig.validation")

# Receives the typed object view of one bean; returns a violation message or None.
RuleFn = Callable[[Dict[str, Any]], Optional[str]]


class BeanValidationEngine:
    """
    Semantic validation of resolved beans.

    Per schema name, an optional pydantic model the object view must satisfy
    and any number of rule callables. Every bean is checked and all
    violations are raised together.
    """

    def __init__(
        self,
        models: Optional[Dict[str, Type[BaseModel]]] = None,
        rules: Optional[Dict[str, List[RuleFn]]] = None,
        conversion: TypeConverter = DEFAULT_CONVERSION,
    ):
        self._models: Dict[str, Type[BaseModel]] = dict(models or {})
        self._rules: Dict[str, List[RuleFn]] = {k: list(v) for k, v in (rules or {}).items()}
        self._conversion = conversion

    def register_model(self, schema_name: str, model: Type[BaseModel]) -> None:
        self._models[schema_name] = model

    def register_rule(self, schema_name: str, rule: RuleFn) -> None:
        self._rules.setdefault(schema_name, []).append(rule)

    def unregister(self, schema_name: str) -> None:
        self._models.pop(schema_name, None)
        self._rules.pop(schema_name, None)

    def validate(self, beans: Collection[Bean]) -> None:
        violations: List[str] = []
        for bean in sorted(beans, key=lambda b: (b.id.schema_name, b.id.instance_id)):
            violations.extend(self._check(bean))
        if violations:
            log.info("validation failed: %d violation(s)", len(violations))
            raise ValidationFailed(violations)

    def _check(self, bean: Bean) -> List[str]:
        schema_name = bean.id.schema_name
        model = self._models.get(schema_name)
        rules = self._rules.get(schema_name, [])
        if model is None and not rules:
            return []

        view = to_object(bean, self._conversion)
        out: List[str] = []
        if model is not None:
            try:
                model.model_validate(view)
            except ValidationError as e:
                for err in e.errors():
                    loc = ".".join(str(p) for p in err.get("loc", ()))
                    out.append(f"{bean.id} {loc}: {err.get('msg')}")
        for rule in rules:
            msg = rule(view)
            if msg:
                out.append(f"{bean.id}: {msg}")
        return out
