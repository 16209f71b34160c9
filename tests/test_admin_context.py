import pytest

from beanconfig.core.beans.models import BeanId
from beanconfig.core.events import (
    BeanNotFound,
    MissingReference,
    PropertyImmutable,
    ReferentialIntegrityViolation,
    SchemaNotFound,
    SingletonCreation,
    ValidationFailed,
    WrongMultiplicity,
    WrongPropertyType,
)


@pytest.fixture(params=["validated", "plain"])
def ctx(request, admin, admin_plain):
    """Every admin flow must hold with and without a validation engine."""
    return admin if request.param == "validated" else admin_plain


def _family(ctx, bean):
    ctx.create(
        [
            bean("Child", "c1", {"name": "Kim", "age": "9"}),
            bean("Parent", "p1", {"name": "Alex", "born": "1970"}, {"children": [BeanId("c1", "Child")]}),
            bean("Grandfather", "g1", {"name": "Eric", "age": "70"}, {"children": [BeanId("p1", "Parent")]}),
        ]
    )


def _snapshot(store):
    return {
        name: {bid: b.to_dict() for bid, b in store.list(name).items()}
        for name in ("Child", "Parent", "Grandfather", "Person")
    }


def test_create_then_get_roundtrip(ctx, bean):
    c = bean("Child", "c1", {"name": "Kim", "age": "9", "mood": "HAPPY"})
    ctx.create(c)

    got = ctx.get(BeanId("c1", "Child"))
    assert got.same_content(c)
    assert got.schema.name == "Child"


def test_get_resolves_references_eagerly(ctx, bean):
    _family(ctx, bean)
    g = ctx.get(BeanId("g1", "Grandfather"))
    parent = g.get_first_reference("children").bean
    assert parent.schema.name == "Parent"
    assert parent.get_first_reference("children").bean.get_single_value("name") == "Kim"


def test_get_unknown_schema(ctx):
    with pytest.raises(SchemaNotFound):
        ctx.get(BeanId("x", "Robot"))


def test_get_missing_bean(ctx):
    with pytest.raises(BeanNotFound):
        ctx.get(BeanId("nobody", "Child"))


def test_singleton_reference_auto_populated(ctx, bean):
    ctx.create(bean("Grandfather", "g1", {"name": "Eric"}))

    first = ctx.get(BeanId("g1", "Grandfather"))
    second = ctx.get(BeanId("g1", "Grandfather"))
    r1 = first.get_first_reference("retirement")
    r2 = second.get_first_reference("retirement")

    assert r1.bean is not None
    assert r1.bean.schema.name == "Pension"
    assert r1.instance_id == r2.instance_id == "Pension"
    assert list(ctx.store.list("Pension")) == [BeanId("Pension", "Pension")]


def test_set_replaces_everything(ctx, bean):
    _family(ctx, bean)
    ctx.set(bean("Grandfather", "g1", {"height": "1.9"}))

    g = ctx.get(BeanId("g1", "Grandfather"))
    assert g.property_names() == ["height"]
    assert g.reference_names() == ["retirement"]


def test_set_keeps_immutable_values(ctx, bean):
    _family(ctx, bean)
    ctx.set(bean("Parent", "p1", {"name": "Sam"}))
    p = ctx.get(BeanId("p1", "Parent"))
    assert p.get_values("born") == ["1970"]
    assert p.get_values("name") == ["Sam"]
    assert not p.has_reference("children")


def test_merge_partial_update(ctx, bean):
    _family(ctx, bean)
    ctx.merge(bean("Grandfather", "g1", {"age": "71", "name": [], "height": "1.7"}))

    g = ctx.get(BeanId("g1", "Grandfather"))
    assert g.get_values("age") == ["71"]
    assert g.get_values("height") == ["1.7"]
    assert not g.has_property("name")
    assert g.get_reference("children") == [BeanId("p1", "Parent")]


def test_merge_replaces_reference_lists_per_name(ctx, bean):
    _family(ctx, bean)
    ctx.create(bean("Child", "c2", {"name": "Lou"}))
    ctx.merge(bean("Parent", "p1", refs={"children": [BeanId("c2", "Child")]}))

    p = ctx.get(BeanId("p1", "Parent"))
    assert p.get_reference("children") == [BeanId("c2", "Child")]
    assert p.get_values("name") == ["Alex"]


def test_set_and_merge_require_existing_bean(ctx, bean):
    with pytest.raises(BeanNotFound):
        ctx.set(bean("Child", "ghost"))
    with pytest.raises(BeanNotFound):
        ctx.merge(bean("Child", "ghost"))


def test_set_with_broken_reference(ctx, bean):
    _family(ctx, bean)
    before = _snapshot(ctx.store)
    with pytest.raises(MissingReference):
        ctx.set(bean("Parent", "p1", refs={"children": [BeanId("ghost", "Child")]}))
    assert _snapshot(ctx.store) == before


def test_create_with_broken_reference(ctx, bean):
    with pytest.raises(MissingReference):
        ctx.create(bean("Parent", "p1", refs={"children": [BeanId("ghost", "Child")]}))
    assert ctx.store.list("Parent") == {}


def test_delete_blocked_by_referrer(ctx, bean):
    _family(ctx, bean)
    with pytest.raises(ReferentialIntegrityViolation):
        ctx.delete(BeanId("c1", "Child"))

    ctx.merge(bean("Parent", "p1", refs={"children": []}))
    ctx.delete(BeanId("c1", "Child"))
    with pytest.raises(BeanNotFound):
        ctx.get(BeanId("c1", "Child"))


def test_delete_many(ctx, bean):
    ctx.create([bean("Child", "c1"), bean("Child", "c2"), bean("Child", "c3")])
    ctx.delete_many("Child", ["c1", "c3"])
    assert [b.id.instance_id for b in ctx.list("Child")] == ["c2"]


@pytest.mark.parametrize("op", ["create", "set", "merge"])
def test_wrong_type_leaves_store_unchanged(ctx, bean, op):
    _family(ctx, bean)
    before = _snapshot(ctx.store)
    instance = "c9" if op == "create" else "c1"
    with pytest.raises(WrongPropertyType):
        getattr(ctx, op)(bean("Child", instance, {"age": "nine"}))
    assert _snapshot(ctx.store) == before


def test_wrong_multiplicity(ctx, bean):
    with pytest.raises(WrongMultiplicity):
        ctx.create(bean("Child", "c1", {"name": ["a", "b"]}))


def test_immutable_cannot_change_after_create(ctx, bean):
    _family(ctx, bean)
    with pytest.raises(PropertyImmutable):
        ctx.merge(bean("Parent", "p1", {"born": "1980"}))


def test_singleton_not_creatable(ctx, bean):
    with pytest.raises(SingletonCreation):
        ctx.create(bean("Pension", "Pension", {"amount": "10"}))


def test_list_all_and_selected(ctx, bean):
    ctx.create([bean("Child", "c2"), bean("Child", "c1")])
    assert [b.id.instance_id for b in ctx.list("Child")] == ["c1", "c2"]
    assert [b.id.instance_id for b in ctx.list("Child", ["c2"])] == ["c2"]
    assert all(b.schema.name == "Child" for b in ctx.list("Child"))


def test_list_missing_id_raises(ctx, bean):
    ctx.create(bean("Child", "c1"))
    with pytest.raises(BeanNotFound):
        ctx.list("Child", ["c1", "nope"])


def test_list_unknown_schema(ctx):
    with pytest.raises(SchemaNotFound):
        ctx.list("Robot")


def test_empty_batches_are_noops(ctx):
    ctx.create([])
    ctx.set([])
    ctx.merge([])
    ctx.delete_many("Child", [])


def test_get_schemas(ctx):
    assert set(ctx.get_schemas()) == {"Pension", "Child", "Parent", "Grandfather", "Person"}


# ---- semantic validation (validation engine present) ----


def _no_silent_grandchildren(view):
    for parent in view.get("children") or []:
        if not isinstance(parent, dict):
            continue
        for child in parent.get("children") or []:
            if isinstance(child, dict) and not child.get("name"):
                return "every grandchild needs a name"
    return None


def test_referrers_are_revalidated_on_merge(admin, engine, bean):
    engine.register_rule("Grandfather", _no_silent_grandchildren)
    _family(admin, bean)
    before = _snapshot(admin.store)

    with pytest.raises(ValidationFailed) as exc:
        admin.merge(bean("Child", "c1", {"name": ""}))
    assert exc.value.event.code == 309
    assert "Grandfather@g1" in exc.value.violations[0]
    assert _snapshot(admin.store) == before


def test_referrers_are_revalidated_on_set(admin, engine, bean):
    engine.register_rule("Grandfather", _no_silent_grandchildren)
    _family(admin, bean)
    with pytest.raises(ValidationFailed):
        admin.set(bean("Child", "c1", {"age": "3"}))


def test_without_engine_semantic_rules_are_skipped(admin_plain, bean):
    _family(admin_plain, bean)
    admin_plain.merge(bean("Child", "c1", {"name": ""}))
    assert admin_plain.get(BeanId("c1", "Child")).get_values("name") == [""]


def test_create_validates_batch_graph(admin, engine, bean):
    engine.register_rule("Grandfather", _no_silent_grandchildren)
    with pytest.raises(ValidationFailed):
        admin.create(
            [
                bean("Grandfather", "g1", refs={"children": [BeanId("p1", "Parent")]}),
                bean("Parent", "p1", refs={"children": [BeanId("c1", "Child")]}),
                bean("Child", "c1"),
            ]
        )
    assert admin.store.list("Grandfather") == {}


def test_explicit_singleton_reference_on_create(ctx, bean):
    ctx.create(bean("Grandfather", "g1", refs={"retirement": [BeanId("Pension", "Pension")]}))

    assert list(ctx.store.list("Pension")) == [BeanId("Pension", "Pension")]
    g = ctx.get(BeanId("g1", "Grandfather"))
    assert g.get_first_reference("retirement").bean.schema.name == "Pension"


def test_explicit_singleton_reference_on_merge(ctx, bean):
    ctx.create(bean("Grandfather", "g1", {"name": "Eric"}))
    ctx.merge(bean("Grandfather", "g1", refs={"retirement": [BeanId("Pension", "Pension")]}))

    stored = ctx.store.get_lazy(BeanId("g1", "Grandfather"))
    assert stored.get_first_reference("retirement") == BeanId("Pension", "Pension")
    assert stored.get_values("name") == ["Eric"]


def test_shared_referrer_validated_once_per_batch(admin, engine, bean):
    seen = []

    def _record(view):
        seen.append(view["id"])
        return "parent rejected"

    admin.create(
        [
            bean("Child", "c1", {"name": "Kim"}),
            bean("Child", "c2", {"name": "Lou"}),
            bean("Parent", "p1", refs={"children": [BeanId("c1", "Child"), BeanId("c2", "Child")]}),
        ]
    )
    engine.register_rule("Parent", _record)

    with pytest.raises(ValidationFailed) as exc:
        admin.merge([bean("Child", "c1", {"age": "4"}), bean("Child", "c2", {"age": "6"})])
    assert seen == ["p1"]
    assert exc.value.violations == ["Parent@p1: parent rejected"]
