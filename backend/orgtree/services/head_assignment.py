"""Assignment of a member as head of an org unit."""

import logging
from uuid import UUID

from orgtree.core.errors import NotFoundError
from orgtree.core.structured_logging import log_json
from orgtree.models.enums import AuditAction
from orgtree.schemas.org_unit import OrgUnitResponse
from orgtree.services.audit_service import AuditService
from orgtree.services.store import MemberDirectory, UnitStore
from orgtree.services.unit_views import to_unit_response

logger = logging.getLogger(__name__)


class HeadAssignment:
    """Sets or clears the weak unit -> member head reference."""

    def __init__(
        self,
        store: UnitStore,
        members: MemberDirectory,
        audit: AuditService | None = None,
    ):
        """Initialize head assignment.

        Args:
            store: Unit store
            members: Member directory used to validate and display the head
            audit: Optional audit trail writer
        """
        self.store = store
        self.members = members
        self.audit = audit

    async def ensure_member_exists(self, member_id: UUID) -> None:
        """Raise NotFoundError if ``member_id`` is not a known member."""
        if not await self.members.exists(member_id):
            raise NotFoundError(
                "Member not found for unit head",
                {"member_id": str(member_id)},
            )

    async def assign_head(self, unit_id: UUID, member_id: UUID | None) -> OrgUnitResponse:
        """Point ``unit_id`` at ``member_id`` as its head (None clears it).

        Args:
            unit_id: Unit to update
            member_id: Member to designate, or None

        Returns:
            The unit enriched with the head's display fields

        Raises:
            NotFoundError: If the unit or the member does not exist
        """
        unit = await self.store.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError("Org unit not found", {"unit_id": str(unit_id)})

        if member_id is not None:
            await self.ensure_member_exists(member_id)

        previous_head_id = unit.head_id
        unit = await self.store.update(unit_id, {"head_id": member_id})

        if self.audit is not None and previous_head_id != member_id:
            await self.audit.log(
                action=AuditAction.ORG_UNIT_HEAD_ASSIGN,
                entity_id=unit.id,
                diff_json={"head_id": {"old": previous_head_id, "new": member_id}},
            )

        log_json(
            logger,
            logging.INFO,
            "org_unit_head_assigned",
            unit_id=unit.id,
            head_id=member_id,
            cleared=member_id is None,
        )
        return await to_unit_response(self.store, self.members, unit)
