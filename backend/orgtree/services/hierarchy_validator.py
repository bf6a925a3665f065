"""Parent assignment validation for the org unit tree."""

import logging
from uuid import UUID

from orgtree.core.errors import CycleError, NotFoundError, SelfReferenceError
from orgtree.core.hierarchy import group_by_parent, is_descendant
from orgtree.core.metrics import record_violation
from orgtree.core.structured_logging import log_json
from orgtree.models.enums import ViolationReason
from orgtree.services.store import UnitStore

logger = logging.getLogger(__name__)


class HierarchyValidator:
    """Checks that re-parenting a unit keeps the tree acyclic."""

    def __init__(self, store: UnitStore):
        """Initialize validator.

        Args:
            store: Unit store to read the current hierarchy from
        """
        self.store = store

    async def validate_reparent(self, unit_id: UUID, proposed_parent_id: UUID | None) -> None:
        """Validate moving ``unit_id`` under ``proposed_parent_id``.

        The whole hierarchy is loaded once and walked in memory, so the cost
        is one query regardless of subtree depth. Read-only.

        Args:
            unit_id: Unit being moved
            proposed_parent_id: New parent, or None to make the unit a root

        Raises:
            NotFoundError: If the unit or the proposed parent does not exist
            SelfReferenceError: If the unit would become its own parent
            CycleError: If the proposed parent is a descendant of the unit
        """
        unit = await self.store.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError("Org unit not found", {"unit_id": str(unit_id)})

        if proposed_parent_id is None:
            return

        if proposed_parent_id == unit_id:
            self._reject(ViolationReason.SELF_REFERENCE, unit_id, proposed_parent_id)
            raise SelfReferenceError(
                "Org unit cannot be its own parent",
                {"unit_id": str(unit_id)},
            )

        parent = await self.store.find_by_id(proposed_parent_id)
        if parent is None:
            raise NotFoundError(
                "Parent org unit not found",
                {"parent_id": str(proposed_parent_id)},
            )

        units = await self.store.list_all()
        children_of = group_by_parent(units, key=lambda u: u.id, parent_key=lambda u: u.parent_id)
        if is_descendant(children_of, unit_id, proposed_parent_id, key=lambda u: u.id):
            self._reject(ViolationReason.WOULD_CREATE_CYCLE, unit_id, proposed_parent_id)
            raise CycleError(
                "Cannot set a descendant unit as parent",
                {"unit_id": str(unit_id), "parent_id": str(proposed_parent_id)},
            )

    def _reject(self, reason: ViolationReason, unit_id: UUID, parent_id: UUID) -> None:
        record_violation(reason.value)
        log_json(
            logger,
            logging.WARNING,
            "hierarchy_violation",
            reason=reason.value,
            unit_id=unit_id,
            parent_id=parent_id,
        )
