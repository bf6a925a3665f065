"""Org unit API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from orgtree.api.deps import get_org_unit_service
from orgtree.core.hierarchy import forest_to_json
from orgtree.schemas.errors import ErrorResponse
from orgtree.schemas.org_unit import (
    AssignHeadRequest,
    CreateOrgUnitRequest,
    MemberSummary,
    OrgUnitDetailResponse,
    OrgUnitFilter,
    OrgUnitResponse,
    OrgUnitTreeNode,
    UpdateOrgUnitRequest,
)
from orgtree.services.org_unit_service import OrgUnitService

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Unit, parent or member not found"}}
CONFLICT = {409: {"model": ErrorResponse, "description": "Duplicate name/code or dependents exist"}}
INVALID = {400: {"model": ErrorResponse, "description": "Self-reference or cycle"}}


@router.post(
    "",
    response_model=OrgUnitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create org unit",
    responses={**NOT_FOUND, **CONFLICT},
)
async def create_org_unit(
    request: CreateOrgUnitRequest,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> OrgUnitResponse:
    """Create an org unit, optionally under a parent and with a head."""
    return await service.create(request)


@router.get(
    "",
    response_model=list[OrgUnitResponse],
    summary="List org units",
    responses=NOT_FOUND,
)
async def list_org_units(
    parent_id: UUID | None = Query(None, description="Only direct children of this unit"),
    roots_only: bool = Query(False, description="Only units without a parent"),
    service: OrgUnitService = Depends(get_org_unit_service),
) -> list[OrgUnitResponse]:
    """Flat list ordered by name."""
    return await service.list_units(OrgUnitFilter(parent_id=parent_id, roots_only=roots_only))


@router.get(
    "/hierarchy",
    response_model=list[OrgUnitTreeNode],
    summary="Get org unit hierarchy tree",
    responses=NOT_FOUND,
)
async def get_hierarchy(
    parent_id: UUID | None = Query(None, description="Return only the subtree below this unit"),
    service: OrgUnitService = Depends(get_org_unit_service),
) -> Response:
    """Nested tree of units; each node carries its ``children``.

    ``OrgUnitTreeNode`` documents the node shape. The body is written
    directly so chains of any depth serialize.
    """
    forest = await service.build_hierarchy(parent_id)
    return Response(content=forest_to_json(forest), media_type="application/json")


@router.get(
    "/{unit_id}",
    response_model=OrgUnitDetailResponse,
    summary="Get org unit details",
    responses=NOT_FOUND,
)
async def get_org_unit(
    unit_id: UUID,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> OrgUnitDetailResponse:
    return await service.get(unit_id)


@router.patch(
    "/{unit_id}",
    response_model=OrgUnitResponse,
    summary="Update org unit",
    responses={**NOT_FOUND, **CONFLICT, **INVALID},
)
async def update_org_unit(
    unit_id: UUID,
    request: UpdateOrgUnitRequest,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> OrgUnitResponse:
    """Partial update; ``parent_id: null`` moves the unit to the root level."""
    return await service.update(unit_id, request)


@router.delete(
    "/{unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete org unit",
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_org_unit(
    unit_id: UUID,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> Response:
    """Delete a unit that has no members and no child units."""
    await service.delete(unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{unit_id}/head",
    response_model=OrgUnitResponse,
    summary="Assign org unit head",
    responses=NOT_FOUND,
)
async def assign_head(
    unit_id: UUID,
    request: AssignHeadRequest,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> OrgUnitResponse:
    """Set the unit's head; ``head_id: null`` clears it."""
    return await service.assign_head(unit_id, request.head_id)


@router.get(
    "/{unit_id}/members",
    response_model=list[MemberSummary],
    summary="List org unit members",
    responses=NOT_FOUND,
)
async def list_org_unit_members(
    unit_id: UUID,
    service: OrgUnitService = Depends(get_org_unit_service),
) -> list[MemberSummary]:
    """Direct members of the unit; members of child units are not included."""
    return await service.list_members(unit_id)
