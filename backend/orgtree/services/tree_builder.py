"""Nested hierarchy reconstruction from flat parent pointers."""

import logging
import time
from typing import Any
from uuid import UUID

from orgtree.core.errors import NotFoundError
from orgtree.core.hierarchy import assemble_forest, count_nodes, group_by_parent
from orgtree.core.metrics import observe_hierarchy_build
from orgtree.core.structured_logging import log_json
from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import MemberSummary
from orgtree.services.store import MemberDirectory, UnitStore

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Builds the unit forest (or one subtree) for the hierarchy view.

    Three reads per call regardless of tree size: all units, member counts
    per unit, and head summaries for every unit that has a head.
    """

    def __init__(self, store: UnitStore, members: MemberDirectory):
        self.store = store
        self.members = members

    async def build_hierarchy(self, root_parent_id: UUID | None = None) -> list[dict[str, Any]]:
        """Return the units whose parent is ``root_parent_id``, children nested.

        Args:
            root_parent_id: None for the whole forest, or a unit ID to return
                that unit's descendants

        Returns:
            Ordered list of plain node dicts shaped like ``OrgUnitTreeNode``;
            sibling order follows the store's name ordering. Nodes stay
            plain dicts because model validation recurses once per level;
            serialize them with ``forest_to_json``.

        Raises:
            NotFoundError: If ``root_parent_id`` names a missing unit
        """
        started = time.perf_counter()

        units = await self.store.list_all()
        if root_parent_id is not None and not any(u.id == root_parent_id for u in units):
            raise NotFoundError("Org unit not found", {"unit_id": str(root_parent_id)})

        member_counts = await self.store.count_members_by_unit()
        heads = await self.members.summaries(u.head_id for u in units if u.head_id is not None)

        children_of = group_by_parent(units, key=lambda u: u.id, parent_key=lambda u: u.parent_id)
        forest = assemble_forest(
            children_of,
            root_parent_id,
            key=lambda u: u.id,
            make_node=lambda u: self._node_fields(u, member_counts, heads),
        )

        duration = time.perf_counter() - started
        observe_hierarchy_build(duration)
        log_json(
            logger,
            logging.DEBUG,
            "hierarchy_built",
            root_parent_id=root_parent_id,
            unit_count=count_nodes(forest),
            duration_ms=round(duration * 1000, 2),
        )
        return forest

    @staticmethod
    def _node_fields(
        unit: OrgUnit,
        member_counts: dict[UUID, int],
        heads: dict[UUID, MemberSummary],
    ) -> dict:
        head = heads.get(unit.head_id) if unit.head_id is not None else None
        return {
            "id": unit.id,
            "name": unit.name,
            "code": unit.code,
            "description": unit.description,
            "parent_id": unit.parent_id,
            "head_id": unit.head_id,
            "head": head.model_dump() if head is not None else None,
            "member_count": member_counts.get(unit.id, 0),
        }
