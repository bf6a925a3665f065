"""Org unit lifecycle: create, read, update and delete."""

import logging
from typing import Any
from uuid import UUID

from orgtree.core.errors import ConflictError, NotFoundError
from orgtree.core.metrics import record_violation
from orgtree.core.structured_logging import log_json
from orgtree.models.enums import AuditAction, ViolationReason
from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import (
    ChildUnitSummary,
    CreateOrgUnitRequest,
    MemberSummary,
    OrgUnitDetailResponse,
    OrgUnitFilter,
    OrgUnitResponse,
    UpdateOrgUnitRequest,
)
from orgtree.services.audit_service import AuditService, unit_snapshot
from orgtree.services.deletion_guard import DeletionGuard
from orgtree.services.head_assignment import HeadAssignment
from orgtree.services.hierarchy_validator import HierarchyValidator
from orgtree.services.store import MemberDirectory, UnitStore
from orgtree.services.tree_builder import TreeBuilder
from orgtree.services.unit_views import to_unit_response

logger = logging.getLogger(__name__)


class OrgUnitService:
    """Service for managing org units.

    Every mutation validates first and writes last, so a rejected request
    leaves the store untouched. Structural changes (re-parenting, deletion)
    hold the store's hierarchy lock from validation through the write.
    """

    def __init__(
        self,
        store: UnitStore,
        members: MemberDirectory,
        audit: AuditService | None = None,
    ):
        """Initialize org unit service.

        Args:
            store: Unit store
            members: Member directory (existence checks and head summaries)
            audit: Optional audit trail writer sharing the store's transaction
        """
        self.store = store
        self.members = members
        self.audit = audit
        self.validator = HierarchyValidator(store)
        self.deletion_guard = DeletionGuard(store)
        self.heads = HeadAssignment(store, members, audit)
        self.tree_builder = TreeBuilder(store, members)

    async def create(self, request: CreateOrgUnitRequest) -> OrgUnitResponse:
        """Create an org unit.

        Args:
            request: Unit creation request

        Returns:
            Created unit with parent/head summaries and zero counts

        Raises:
            ConflictError: If the name or code is already taken
            NotFoundError: If the parent unit or head member does not exist
        """
        await self._ensure_name_available(request.name)
        await self._ensure_code_available(request.code)

        if request.parent_id is not None:
            # Serializes with delete so the parent cannot vanish after this check
            await self.store.lock_hierarchy()
            await self._get_unit(request.parent_id, message="Parent org unit not found")

        if request.head_id is not None:
            await self.heads.ensure_member_exists(request.head_id)

        unit = await self.store.create(request.model_dump())

        if self.audit is not None:
            await self.audit.log(
                action=AuditAction.ORG_UNIT_CREATE,
                entity_id=unit.id,
                diff_json=unit_snapshot(unit),
            )

        log_json(
            logger,
            logging.INFO,
            "org_unit_created",
            unit_id=unit.id,
            code=unit.code,
            parent_id=unit.parent_id,
        )
        return await to_unit_response(self.store, self.members, unit)

    async def get(self, unit_id: UUID) -> OrgUnitDetailResponse:
        """Get a unit with its direct children.

        Raises:
            NotFoundError: If the unit does not exist
        """
        unit = await self._get_unit(unit_id)
        response = await to_unit_response(self.store, self.members, unit)

        children = await self.store.list_children(unit_id)
        member_counts = await self.store.count_members_by_unit() if children else {}
        return OrgUnitDetailResponse(
            **response.model_dump(),
            children=[
                ChildUnitSummary(
                    id=child.id,
                    name=child.name,
                    code=child.code,
                    member_count=member_counts.get(child.id, 0),
                )
                for child in children
            ],
        )

    async def list_units(self, filters: OrgUnitFilter | None = None) -> list[OrgUnitResponse]:
        """List units ordered by name.

        Args:
            filters: Optional parent/root filter

        Returns:
            Matching units with counts and parent/head summaries

        Raises:
            NotFoundError: If filtering by a parent that does not exist
        """
        filters = filters or OrgUnitFilter()
        if filters.roots_only:
            units = await self.store.list_roots()
        elif filters.parent_id is not None:
            await self._get_unit(filters.parent_id, message="Parent org unit not found")
            units = await self.store.list_children(filters.parent_id)
        else:
            units = await self.store.list_all()

        if not units:
            return []

        filtered = filters.roots_only or filters.parent_id is not None
        all_units = await self.store.list_all() if filtered else units
        member_counts = await self.store.count_members_by_unit()
        child_counts = await self.store.count_children_by_unit()
        names = {u.id: u.name for u in all_units}
        heads = await self.members.summaries(u.head_id for u in units if u.head_id is not None)

        return [
            OrgUnitResponse(
                id=unit.id,
                name=unit.name,
                code=unit.code,
                description=unit.description,
                parent_id=unit.parent_id,
                head_id=unit.head_id,
                parent=(
                    {"id": unit.parent_id, "name": names[unit.parent_id]}
                    if unit.parent_id in names
                    else None
                ),
                head=heads.get(unit.head_id) if unit.head_id is not None else None,
                member_count=member_counts.get(unit.id, 0),
                child_count=child_counts.get(unit.id, 0),
                created_at=unit.created_at,
                updated_at=unit.updated_at,
            )
            for unit in units
        ]

    async def list_members(self, unit_id: UUID) -> list[MemberSummary]:
        """Direct members of a unit (not of its descendants), ordered by name.

        Raises:
            NotFoundError: If the unit does not exist
        """
        await self._get_unit(unit_id)
        return await self.members.list_by_unit(unit_id)

    async def update(self, unit_id: UUID, request: UpdateOrgUnitRequest) -> OrgUnitResponse:
        """Apply a partial update.

        Only fields present in ``request`` are changed. Name and code
        uniqueness is re-checked when they change; a changed parent is run
        through cycle validation; a changed head must be an existing member.

        Raises:
            NotFoundError: If the unit, new parent or new head does not exist
            ConflictError: If the new name or code is taken by another unit
            SelfReferenceError: If the unit is made its own parent
            CycleError: If the new parent is one of the unit's descendants
        """
        supplied = request.changes()
        reparenting = "parent_id" in supplied
        if reparenting:
            await self.store.lock_hierarchy()

        unit = await self._get_unit(unit_id)
        changes: dict[str, Any] = {
            field: value
            for field, value in supplied.items()
            if getattr(unit, field) != value
        }

        if "name" in changes:
            await self._ensure_name_available(changes["name"], exclude_id=unit_id)
        if "code" in changes:
            await self._ensure_code_available(changes["code"], exclude_id=unit_id)
        if "parent_id" in changes:
            await self.validator.validate_reparent(unit_id, changes["parent_id"])
        if changes.get("head_id") is not None:
            await self.heads.ensure_member_exists(changes["head_id"])

        if not changes:
            return await to_unit_response(self.store, self.members, unit)

        diff = {
            field: {"old": getattr(unit, field), "new": value}
            for field, value in changes.items()
        }
        unit = await self.store.update(unit_id, changes)

        if self.audit is not None:
            await self.audit.log(
                action=AuditAction.ORG_UNIT_UPDATE,
                entity_id=unit.id,
                diff_json=diff,
            )

        log_json(
            logger,
            logging.INFO,
            "org_unit_updated",
            unit_id=unit.id,
            fields=sorted(changes),
        )
        return await to_unit_response(self.store, self.members, unit)

    async def delete(self, unit_id: UUID) -> None:
        """Delete a unit with no members and no child units.

        Raises:
            NotFoundError: If the unit does not exist
            ConflictError: If the unit still has members or children
        """
        await self.store.lock_hierarchy()
        unit = await self._get_unit(unit_id)
        await self.deletion_guard.can_delete(unit_id)

        snapshot = unit_snapshot(unit)
        await self.store.delete(unit_id)

        if self.audit is not None:
            await self.audit.log(
                action=AuditAction.ORG_UNIT_DELETE,
                entity_id=unit_id,
                diff_json=snapshot,
            )

        log_json(logger, logging.INFO, "org_unit_deleted", unit_id=unit_id, code=snapshot["code"])

    async def assign_head(self, unit_id: UUID, member_id: UUID | None) -> OrgUnitResponse:
        """Set or clear the head of a unit (see HeadAssignment)."""
        return await self.heads.assign_head(unit_id, member_id)

    async def build_hierarchy(self, root_parent_id: UUID | None = None) -> list[dict[str, Any]]:
        """Nested tree below ``root_parent_id`` (see TreeBuilder)."""
        return await self.tree_builder.build_hierarchy(root_parent_id)

    async def _get_unit(self, unit_id: UUID, message: str = "Org unit not found") -> OrgUnit:
        unit = await self.store.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError(message, {"unit_id": str(unit_id)})
        return unit

    async def _ensure_name_available(self, name: str, exclude_id: UUID | None = None) -> None:
        existing = await self.store.find_by_name(name)
        if existing is not None and existing.id != exclude_id:
            record_violation(ViolationReason.DUPLICATE_NAME.value)
            raise ConflictError(
                "Org unit name already exists",
                reason=ViolationReason.DUPLICATE_NAME.value,
                details={"reason": ViolationReason.DUPLICATE_NAME.value, "name": name},
            )

    async def _ensure_code_available(self, code: str, exclude_id: UUID | None = None) -> None:
        existing = await self.store.find_by_code(code)
        if existing is not None and existing.id != exclude_id:
            record_violation(ViolationReason.DUPLICATE_CODE.value)
            raise ConflictError(
                "Org unit code already exists",
                reason=ViolationReason.DUPLICATE_CODE.value,
                details={"reason": ViolationReason.DUPLICATE_CODE.value, "code": code},
            )
