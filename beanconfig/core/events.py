from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

MODULE_NAME = "beanconfig"

CFG101 = 101
CFG105 = 105
CFG106 = 106
CFG107 = 107
CFG110 = 110
CFG111 = 111
CFG301 = 301
CFG302 = 302
CFG303 = 303
CFG304 = 304
CFG306 = 306
CFG307 = 307
CFG308 = 308
CFG309 = 309


@dataclass(frozen=True)
class Event:
    module: str
    code: int
    message: str

    def to_dict(self) -> dict:
        return {"module": self.module, "code": self.code, "message": self.message}


class AbortError(Exception):
    """
    Single abortable error kind raised by the admin core.

    Carries a structured Event; subclasses only exist so callers can
    catch a specific failure without inspecting codes.
    """

    code: int = 0

    def __init__(self, message: str, *, code: Optional[int] = None):
        self.event = Event(MODULE_NAME, code if code is not None else self.code, message)
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.event.module}.CFG{self.event.code}: {self.event.message}"


class SchemaNotFound(AbortError):
    code = CFG101

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        super().__init__(f"Config schema does not exist: {schema_name}")


class WrongPropertyType(AbortError):
    code = CFG105

    def __init__(self, bean_id: Any, property_name: str, type_name: str, value: Any):
        super().__init__(
            f"Bean {bean_id} have a property {type_name}@{property_name} "
            f"with value {value} not matching its type."
        )


class WrongMultiplicity(AbortError):
    code = CFG106

    def __init__(self, bean_id: Any, property_name: str):
        super().__init__(f"Bean {bean_id} have a property {property_name} with invalid multiplicity type value.")


class MissingId(AbortError):
    code = CFG107

    def __init__(self):
        super().__init__("Bean lacks identification.")


class PropertyNotInSchema(AbortError):
    code = CFG110

    def __init__(self, property_name: str):
        super().__init__(f"Bean property [{property_name}] does not exist in schema.")


class ReferenceNotInSchema(AbortError):
    code = CFG111

    def __init__(self, reference_name: str):
        super().__init__(f"Bean reference [{reference_name}] does not exist in schema.")


class MissingReference(AbortError):
    code = CFG301

    def __init__(self, bean_id: Any, refs: Optional[Iterable[Any]] = None):
        self.refs = list(refs or [])
        if self.refs:
            msg = f"Bean {bean_id} have a missing runtime references: {_fmt_ids(self.refs)}"
        else:
            msg = f"Bean {bean_id} have a missing runtime references."
        super().__init__(msg)


class ReferentialIntegrityViolation(AbortError):
    code = CFG302

    def __init__(self, ids: Iterable[Any]):
        self.ids = list(ids)
        super().__init__(
            f"One or more beans {_fmt_ids(self.ids)} cannot be deleted because of existing references from other beans."
        )


class BeanAlreadyExists(AbortError):
    code = CFG303

    def __init__(self, bean_id: Any):
        super().__init__(f"Bean with id {bean_id} already exist.")


class BeanNotFound(AbortError):
    code = CFG304

    def __init__(self, bean_id: Any):
        self.bean_id = bean_id
        super().__init__(f"Bean with id {bean_id} does not exist.")


class PropertyImmutable(AbortError):
    code = CFG306

    def __init__(self, bean_id: Any, property_name: str):
        super().__init__(f"Property {property_name} for bean with id {bean_id} is not mutable.")


class SingletonRemoval(AbortError):
    code = CFG307

    def __init__(self, bean_id: Any):
        super().__init__(f"Singleton bean {bean_id} cannot be removed.")


class SingletonCreation(AbortError):
    code = CFG308

    def __init__(self, bean_id: Any):
        super().__init__(f"Only one singleton bean {bean_id} is allowed to exist.")


class ValidationFailed(AbortError):
    code = CFG309

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__(f"Bean application validation failed: {'; '.join(self.violations)}")


def _fmt_ids(ids: Iterable[Any]) -> str:
    return "[" + ", ".join(str(i) for i in ids) + "]"
