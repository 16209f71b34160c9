from decimal import Decimal
from typing import List, Optional

import pytest
from pydantic import BaseModel

from beanconfig.core.admin.attacher import attach_schema
from beanconfig.core.beans.models import BeanId
from beanconfig.core.beans.objects import to_object
from beanconfig.core.events import BeanNotFound
from beanconfig.core.runtime.context import RuntimeContext
from beanconfig.core.schema.models import Schema, SchemaProperty


class Child(BaseModel):
    id: str
    name: Optional[str] = None
    age: Optional[int] = None


class Parent(BaseModel):
    id: str
    name: Optional[str] = None
    children: List[Child] = []


class Pension(BaseModel):
    amount: int


@pytest.fixture()
def runtime(admin):
    return RuntimeContext(admin)


def _family(admin, bean):
    admin.create(
        [
            bean("Child", "c1", {"name": "Kim", "age": "9"}),
            bean("Parent", "p1", {"name": "Alex"}, {"children": [BeanId("c1", "Child")]}),
            bean("Grandfather", "g1", {"name": "Eric", "lucky_numbers": ["7", "13"]}, {"children": [BeanId("p1", "Parent")]}),
        ]
    )


def test_object_view_converts_types(runtime, admin, bean):
    _family(admin, bean)
    view = runtime.get("Grandfather", "g1")
    assert view["id"] == "g1"
    assert view["lucky_numbers"] == [7, 13]
    assert view["age"] is None
    assert view["nicknames"] == []
    assert view["children"][0]["children"][0]["age"] == 9
    assert view["retirement"] == {"amount": 0}


def test_model_view(runtime, admin, bean):
    _family(admin, bean)
    parent = runtime.get("Parent", "p1", Parent)
    assert isinstance(parent, Parent)
    assert parent.children[0].name == "Kim"


def test_all(runtime, admin, bean):
    _family(admin, bean)
    admin.create(bean("Child", "c2", {"name": "Lou"}))
    children = runtime.all("Child", Child)
    assert [c.id for c in children] == ["c1", "c2"]


def test_singleton_created_on_first_access(runtime):
    pension = runtime.singleton("Pension", Pension)
    assert pension.amount == 0


def test_missing_bean(runtime):
    with pytest.raises(BeanNotFound):
        runtime.get("Child", "nobody")


def test_cycles_are_cut_with_instance_ids(admin, bean):
    admin.create(
        [
            bean("Person", "ann", {"name": "Ann"}, {"spouse": [BeanId("bob", "Person")]}),
            bean("Person", "bob", {"name": "Bob"}, {"spouse": [BeanId("ann", "Person")]}),
        ]
    )
    view = to_object(admin.get(BeanId("ann", "Person")))
    assert view["spouse"]["name"] == "Bob"
    assert view["spouse"]["spouse"] == "ann"


def test_decimal_and_defaults(bean):
    schema = Schema(
        name="Price",
        declarations=(
            SchemaProperty(name="amount", type="decimal", default="1.50"),
            SchemaProperty(name="currency", type="str"),
        ),
    )
    price = bean("Price", "p1", {"currency": "EUR"})
    attach_schema(price, {"Price": schema})
    assert to_object(price) == {"id": "p1", "amount": Decimal("1.50"), "currency": "EUR"}


def test_reference_map_keyed_by_instance_id(runtime, admin, bean):
    admin.create(
        [
            bean("Person", "ann", {"name": "Ann"}),
            bean("Person", "bob", {"name": "Bob"}),
            bean("Grandfather", "g1", refs={"friends": [BeanId("ann", "Person"), BeanId("bob", "Person")]}),
        ]
    )
    view = runtime.get("Grandfather", "g1")
    assert view["friends"] == {
        "ann": {"id": "ann", "name": "Ann", "spouse": None},
        "bob": {"id": "bob", "name": "Bob", "spouse": None},
    }
    assert view["children"] == []
