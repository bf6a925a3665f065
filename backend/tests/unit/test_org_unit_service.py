"""Unit tests for the org unit lifecycle service."""
import random
from uuid import uuid4

import pytest

from orgtree.core.errors import (
    ConflictError,
    HierarchyError,
    InvalidOperationError,
    NotFoundError,
    SelfReferenceError,
)
from orgtree.models.enums import AuditAction
from orgtree.schemas.org_unit import (
    CreateOrgUnitRequest,
    OrgUnitFilter,
    UpdateOrgUnitRequest,
)


def _create(name, code, **kwargs):
    return CreateOrgUnitRequest(name=name, code=code, **kwargs)


@pytest.mark.asyncio
async def test_create_returns_enriched_unit(service, member_directory):
    head = member_directory.add("Ada", "King")

    root = await service.create(_create("Sales", "SLS", description="Sales org"))
    child = await service.create(_create("Sales-East", "SLE", parent_id=root.id, head_id=head.id))

    assert root.parent is None
    assert root.member_count == 0
    assert root.child_count == 0
    assert child.parent_id == root.id
    assert child.parent.name == "Sales"
    assert child.head.display_name == "Ada King"


@pytest.mark.asyncio
async def test_create_duplicate_name_or_code_conflict(service, unit_store):
    await service.create(_create("Sales", "SLS"))

    with pytest.raises(ConflictError) as exc_info:
        await service.create(_create("Sales", "OTHER"))
    assert exc_info.value.reason == "duplicate_name"

    with pytest.raises(ConflictError) as exc_info:
        await service.create(_create("Other", "SLS"))
    assert exc_info.value.reason == "duplicate_code"

    assert len(unit_store.units) == 1


@pytest.mark.asyncio
async def test_create_unique_fields_succeeds(service):
    await service.create(_create("Sales", "SLS"))
    created = await service.create(_create("Marketing", "MKT"))

    assert created.name == "Marketing"


@pytest.mark.asyncio
async def test_uniqueness_is_case_sensitive(service):
    await service.create(_create("Sales", "SLS"))

    created = await service.create(_create("sales", "sls"))

    assert created.name == "sales"


@pytest.mark.asyncio
async def test_create_with_missing_parent_or_head_not_found(service, unit_store):
    with pytest.raises(NotFoundError):
        await service.create(_create("Sales", "SLS", parent_id=uuid4()))
    with pytest.raises(NotFoundError):
        await service.create(_create("Sales", "SLS", head_id=uuid4()))

    assert unit_store.units == {}


@pytest.mark.asyncio
async def test_update_self_parent_invalid(service):
    unit = await service.create(_create("Sales", "SLS"))

    with pytest.raises(SelfReferenceError) as exc_info:
        await service.update(unit.id, UpdateOrgUnitRequest(parent_id=unit.id))

    assert isinstance(exc_info.value, InvalidOperationError)


@pytest.mark.asyncio
async def test_update_cycle_rejected_and_root_noop(service, unit_store, chain):
    a, _, c = chain

    with pytest.raises(InvalidOperationError):
        await service.update(a.id, UpdateOrgUnitRequest(parent_id=c.id))
    assert unit_store.units[a.id].parent_id is None

    writes_before = unit_store.writes
    response = await service.update(a.id, UpdateOrgUnitRequest(parent_id=None))

    assert response.parent_id is None
    assert unit_store.writes == writes_before


@pytest.mark.asyncio
async def test_update_reparent_takes_hierarchy_lock(service, unit_store, chain):
    a, _, c = chain
    other = await service.create(_create("Other", "OTH"))

    await service.update(c.id, UpdateOrgUnitRequest(parent_id=other.id))

    assert unit_store.lock_calls == 1
    assert unit_store.units[c.id].parent_id == other.id


@pytest.mark.asyncio
async def test_update_explicit_null_parent_moves_to_root(service, unit_store, chain):
    _, b, _ = chain

    response = await service.update(b.id, UpdateOrgUnitRequest(parent_id=None))

    assert response.parent_id is None
    assert unit_store.units[b.id].parent_id is None


@pytest.mark.asyncio
async def test_partial_update_keeps_omitted_fields(service, unit_store):
    root = await service.create(_create("Sales", "SLS"))
    unit = await service.create(_create("East", "EST", description="East coast", parent_id=root.id))
    locks_before = unit_store.lock_calls

    response = await service.update(unit.id, UpdateOrgUnitRequest(name="Sales East"))

    assert response.name == "Sales East"
    assert response.code == "EST"
    assert response.description == "East coast"
    assert response.parent_id == root.id
    assert unit_store.lock_calls == locks_before


@pytest.mark.asyncio
async def test_update_rename_conflicts_but_same_name_allowed(service):
    await service.create(_create("Sales", "SLS"))
    unit = await service.create(_create("Marketing", "MKT"))

    with pytest.raises(ConflictError):
        await service.update(unit.id, UpdateOrgUnitRequest(name="Sales"))
    with pytest.raises(ConflictError):
        await service.update(unit.id, UpdateOrgUnitRequest(code="SLS"))

    response = await service.update(unit.id, UpdateOrgUnitRequest(name="Marketing", code="MKT"))
    assert response.name == "Marketing"


@pytest.mark.asyncio
async def test_update_head_must_exist(service, member_directory):
    unit = await service.create(_create("Sales", "SLS"))
    member = member_directory.add()

    with pytest.raises(NotFoundError):
        await service.update(unit.id, UpdateOrgUnitRequest(head_id=uuid4()))

    response = await service.update(unit.id, UpdateOrgUnitRequest(head_id=member.id))
    assert response.head_id == member.id

    response = await service.update(unit.id, UpdateOrgUnitRequest(head_id=None))
    assert response.head_id is None


@pytest.mark.asyncio
async def test_update_missing_unit_not_found(service):
    with pytest.raises(NotFoundError):
        await service.update(uuid4(), UpdateOrgUnitRequest(name="X"))


@pytest.mark.asyncio
async def test_update_records_field_diff(service, audit):
    unit = await service.create(_create("Sales", "SLS"))

    await service.update(unit.id, UpdateOrgUnitRequest(name="Revenue", description="All sales"))

    event = audit.events[-1]
    assert event["action"] == AuditAction.ORG_UNIT_UPDATE
    assert event["diff_json"] == {
        "name": {"old": "Sales", "new": "Revenue"},
        "description": {"old": None, "new": "All sales"},
    }


@pytest.mark.asyncio
async def test_delete_guarded_then_succeeds_bottom_up(service, unit_store, chain, audit):
    a, b, c = chain

    with pytest.raises(ConflictError):
        await service.delete(a.id)
    with pytest.raises(ConflictError):
        await service.delete(b.id)

    await service.delete(c.id)
    await service.delete(b.id)
    await service.delete(a.id)

    assert unit_store.units == {}
    assert [e["action"] for e in audit.events] == [AuditAction.ORG_UNIT_DELETE] * 3


@pytest.mark.asyncio
async def test_delete_missing_unit_not_found(service):
    with pytest.raises(NotFoundError):
        await service.delete(uuid4())


@pytest.mark.asyncio
async def test_get_includes_children_with_member_counts(service, member_directory, chain):
    a, b, _ = chain
    member_directory.add(unit_id=b.id)

    detail = await service.get(a.id)

    assert detail.child_count == 1
    assert [(child.id, child.member_count) for child in detail.children] == [(b.id, 1)]


@pytest.mark.asyncio
async def test_list_units_filters(service, chain):
    a, b, c = chain

    everything = await service.list_units()
    roots = await service.list_units(OrgUnitFilter(roots_only=True))
    under_a = await service.list_units(OrgUnitFilter(parent_id=a.id))

    assert [u.id for u in everything] == [a.id, b.id, c.id]
    assert [u.id for u in roots] == [a.id]
    assert [u.id for u in under_a] == [b.id]
    assert under_a[0].parent.name == "A"
    assert under_a[0].child_count == 1

    with pytest.raises(NotFoundError):
        await service.list_units(OrgUnitFilter(parent_id=uuid4()))


@pytest.mark.asyncio
async def test_sales_scenario_end_to_end(service, unit_store):
    a = await service.create(_create("Sales", "SLS"))
    b = await service.create(_create("Sales-East", "SLE", parent_id=a.id))

    with pytest.raises(InvalidOperationError):
        await service.update(a.id, UpdateOrgUnitRequest(parent_id=b.id))

    with pytest.raises(ConflictError) as exc_info:
        await service.delete(a.id)
    assert exc_info.value.reason == "has_children"

    await service.delete(b.id)
    await service.delete(a.id)

    assert unit_store.units == {}


def _assert_acyclic(unit_store):
    total = len(unit_store.units)
    for unit in unit_store.units.values():
        current, steps = unit, 0
        while current.parent_id is not None:
            current = unit_store.units[current.parent_id]
            steps += 1
            assert steps <= total


@pytest.mark.asyncio
async def test_random_operation_sequences_keep_forest_acyclic(service, unit_store):
    rng = random.Random(20240611)
    for i in range(12):
        await service.create(_create(f"Unit {i}", f"U{i}"))

    for _ in range(300):
        ids = list(unit_store.units)
        if not ids:
            break
        unit_id = rng.choice(ids)
        roll = rng.random()
        try:
            if roll < 0.75:
                parent_id = rng.choice(ids + [None])
                await service.update(unit_id, UpdateOrgUnitRequest(parent_id=parent_id))
            elif roll < 0.9:
                await service.delete(unit_id)
            else:
                n = len(unit_store.units) + rng.randrange(10_000)
                await service.create(_create(f"New {n}", f"N{n}", parent_id=unit_id))
        except HierarchyError:
            pass
        _assert_acyclic(unit_store)


@pytest.mark.asyncio
async def test_create_under_parent_takes_hierarchy_lock(service, unit_store):
    root = await service.create(_create("Sales", "SLS"))
    assert unit_store.lock_calls == 0

    await service.create(_create("Sales-East", "SLE", parent_id=root.id))

    assert unit_store.lock_calls == 1


@pytest.mark.asyncio
async def test_list_members_returns_direct_members_only(service, member_directory, chain):
    a, b, _ = chain
    member_directory.add("Zoe", "Young", unit_id=a.id)
    member_directory.add("Ann", "Lee", unit_id=a.id, avatar="https://cdn.example/ann.png")
    member_directory.add("Bob", "Ray", unit_id=b.id)
    member_directory.add("Free", "Agent")

    members = await service.list_members(a.id)

    assert [m.display_name for m in members] == ["Ann Lee", "Zoe Young"]
    assert members[0].avatar == "https://cdn.example/ann.png"
    assert await service.list_members(chain[2].id) == []


@pytest.mark.asyncio
async def test_list_members_of_missing_unit_not_found(service):
    with pytest.raises(NotFoundError):
        await service.list_members(uuid4())
