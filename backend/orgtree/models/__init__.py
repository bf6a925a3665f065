"""SQLAlchemy models."""

from orgtree.models.audit_event import AuditEvent
from orgtree.models.base import Base, BaseModel
from orgtree.models.enums import AuditAction, ViolationReason
from orgtree.models.member import Member
from orgtree.models.org_unit import OrgUnit

__all__ = [
    "Base",
    "BaseModel",
    "AuditAction",
    "ViolationReason",
    "AuditEvent",
    "Member",
    "OrgUnit",
]
