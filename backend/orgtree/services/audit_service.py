"""Audit service for recording hierarchy changes."""
import json
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from orgtree.core.request_context import get_request_id
from orgtree.models.audit_event import AuditEvent
from orgtree.models.enums import AuditAction
from orgtree.models.org_unit import OrgUnit


def unit_snapshot(unit: OrgUnit) -> dict[str, Any]:
    """Field values of ``unit`` recorded on create and delete."""
    return {
        "name": unit.name,
        "code": unit.code,
        "description": unit.description,
        "parent_id": unit.parent_id,
        "head_id": unit.head_id,
    }


class AuditService:
    """Service for creating audit trail entries."""

    def __init__(self, db: AsyncSession):
        """Initialize audit service.

        Args:
            db: Database session
        """
        self.db = db

    async def log(
        self,
        action: AuditAction,
        entity_id: UUID,
        entity_type: str = "org_unit",
        diff_json: Optional[dict[str, Any]] = None,
    ) -> AuditEvent:
        """Create an audit log entry in the current transaction.

        Args:
            action: Action being performed
            entity_id: ID of entity being acted upon
            entity_type: Type of entity being acted upon
            diff_json: Before/after diff or snapshot; UUIDs and datetimes are
                stored as strings

        Returns:
            Created AuditEvent instance
        """
        audit_event = AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            diff_json=json.loads(json.dumps(diff_json, default=str)) if diff_json else None,
            request_id=get_request_id(),
        )
        self.db.add(audit_event)
        await self.db.flush()
        return audit_event
