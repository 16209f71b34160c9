import os
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from beanconfig.api.main import create_app
from beanconfig.core.admin.context import AdminContext
from beanconfig.core.beans.models import Bean, BeanId
from beanconfig.core.config import AdminConfig
from beanconfig.core.observability.metrics import reset_metrics
from beanconfig.core.schema.models import (
    Schema,
    SchemaProperty,
    SchemaPropertyList,
    SchemaPropertyRef,
    SchemaPropertyRefList,
    SchemaPropertyRefMap,
)
from beanconfig.providers.memory_store import InMemoryBeanStore
from beanconfig.providers.schema_registry import InMemorySchemaRegistry
from beanconfig.providers.validation import BeanValidationEngine


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    os.environ.setdefault("BEANCONFIG_ENV", "dev")
    os.environ.setdefault("BEANCONFIG_AUDIT_ENABLED", "0")


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()
    yield


def family_schemas() -> List[Schema]:
    """
    Grandfather -> Parent -> Child, plus the singleton Pension every
    Grandfather is bound to. Person can reference itself, for cycles, and
    a Grandfather keeps friends keyed by instance id.
    """
    pension = Schema(
        name="Pension",
        type="family.Pension",
        singleton=True,
        declarations=(SchemaProperty(name="amount", type="int", default="0"),),
    )
    child = Schema(
        name="Child",
        type="family.Child",
        declarations=(
            SchemaProperty(name="name", type="str"),
            SchemaProperty(name="age", type="int"),
            SchemaProperty(name="mood", type="enum", enum_values=("HAPPY", "GRUMPY")),
        ),
    )
    parent = Schema(
        name="Parent",
        type="family.Parent",
        declarations=(
            SchemaProperty(name="name", type="str"),
            SchemaProperty(name="born", type="str", immutable=True),
            SchemaPropertyRefList(name="children", schema_name="Child"),
        ),
    )
    grandfather = Schema(
        name="Grandfather",
        type="family.Grandfather",
        declarations=(
            SchemaProperty(name="name", type="str"),
            SchemaProperty(name="age", type="int"),
            SchemaProperty(name="height", type="double"),
            SchemaPropertyList(name="nicknames", type="str"),
            SchemaPropertyList(name="lucky_numbers", type="short"),
            SchemaPropertyRefList(name="children", schema_name="Parent"),
            SchemaPropertyRef(name="favourite", schema_name="Child"),
            SchemaPropertyRef(name="retirement", schema_name="Pension", singleton=True),
            SchemaPropertyRefMap(name="friends", schema_name="Person"),
        ),
    )
    person = Schema(
        name="Person",
        type="family.Person",
        declarations=(
            SchemaProperty(name="name", type="str"),
            SchemaPropertyRef(name="spouse", schema_name="Person"),
        ),
    )
    return [pension, child, parent, grandfather, person]


def make_bean(
    schema_name: str,
    instance_id: str,
    props: Optional[Dict[str, object]] = None,
    refs: Optional[Dict[str, List[BeanId]]] = None,
) -> Bean:
    bean = Bean.create(BeanId(instance_id, schema_name))
    for name, value in (props or {}).items():
        bean.set_property(name, value)
    for name, ids in (refs or {}).items():
        bean.set_references(name, ids)
    return bean


@pytest.fixture()
def bean():
    return make_bean


@pytest.fixture()
def registry():
    return InMemorySchemaRegistry(family_schemas())


@pytest.fixture()
def store(registry):
    return InMemoryBeanStore(registry, validate_depth=2)


@pytest.fixture()
def engine():
    return BeanValidationEngine()


@pytest.fixture()
def admin(store, registry, engine):
    return AdminContext(store, registry, engine)


@pytest.fixture()
def admin_plain(store, registry):
    """No validation engine: reference resolution and semantic checks are skipped."""
    return AdminContext(store, registry)


@pytest.fixture()
def client(admin):
    app = create_app(AdminConfig(audit_enabled=False), admin=admin)
    return TestClient(app)
