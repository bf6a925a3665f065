"""Read-time enrichment of org units for API responses."""

from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import OrgUnitResponse, UnitSummary
from orgtree.services.store import MemberDirectory, UnitStore


async def to_unit_response(
    store: UnitStore,
    members: MemberDirectory,
    unit: OrgUnit,
) -> OrgUnitResponse:
    """Join parent/head summaries and direct dependent counts onto ``unit``."""
    parent = None
    if unit.parent_id is not None:
        parent_unit = await store.find_by_id(unit.parent_id)
        if parent_unit is not None:
            parent = UnitSummary.model_validate(parent_unit)

    head = None
    if unit.head_id is not None:
        head = await members.summary(unit.head_id)

    return OrgUnitResponse(
        id=unit.id,
        name=unit.name,
        code=unit.code,
        description=unit.description,
        parent_id=unit.parent_id,
        head_id=unit.head_id,
        parent=parent,
        head=head,
        member_count=await store.count_direct_members(unit.id),
        child_count=await store.count_direct_children(unit.id),
        created_at=unit.created_at,
        updated_at=unit.updated_at,
    )
