"""AuditEvent model."""

from sqlalchemy import JSON, Column, String, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB

from orgtree.models.base import BaseModel
from orgtree.models.enums import AuditAction


class AuditEvent(BaseModel):
    """Append-only record of a hierarchy change.

    ``diff_json`` holds the per-field ``{"old": ..., "new": ...}`` changes
    for updates and a snapshot of the unit for create/delete.
    """

    __tablename__ = "audit_events"

    action = Column(
        SQLEnum(
            AuditAction,
            name="audit_action",
            native_enum=False,
            length=50,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    diff_json = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    request_id = Column(String(128), nullable=True)

    def __repr__(self) -> str:
        return f"<AuditEvent(id={self.id}, action={self.action}, entity_type={self.entity_type})>"
