"""Dependent checks run before an org unit is removed."""

import logging
from uuid import UUID

from orgtree.core.errors import ConflictError
from orgtree.core.metrics import record_violation
from orgtree.core.structured_logging import log_json
from orgtree.models.enums import ViolationReason
from orgtree.services.store import UnitStore

logger = logging.getLogger(__name__)


class DeletionGuard:
    """Blocks deletion of units that still have members or child units.

    Counts are read fresh on every call; nothing is cached between attempts.
    """

    def __init__(self, store: UnitStore):
        self.store = store

    async def can_delete(self, unit_id: UUID) -> None:
        """Raise ConflictError unless ``unit_id`` has no direct dependents.

        Members are checked before child units.
        """
        member_count = await self.store.count_direct_members(unit_id)
        if member_count > 0:
            self._block(unit_id, ViolationReason.HAS_MEMBERS, member_count=member_count)
            raise ConflictError(
                "Cannot delete org unit with members",
                reason=ViolationReason.HAS_MEMBERS.value,
                details={"reason": ViolationReason.HAS_MEMBERS.value, "member_count": member_count},
            )

        child_count = await self.store.count_direct_children(unit_id)
        if child_count > 0:
            self._block(unit_id, ViolationReason.HAS_CHILDREN, child_count=child_count)
            raise ConflictError(
                "Cannot delete org unit with child units",
                reason=ViolationReason.HAS_CHILDREN.value,
                details={"reason": ViolationReason.HAS_CHILDREN.value, "child_count": child_count},
            )

    def _block(self, unit_id: UUID, reason: ViolationReason, **counts: int) -> None:
        record_violation(reason.value)
        log_json(
            logger,
            logging.INFO,
            "org_unit_delete_blocked",
            unit_id=unit_id,
            reason=reason.value,
            **counts,
        )
