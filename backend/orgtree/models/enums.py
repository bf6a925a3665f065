"""Enumerations shared by models and schemas."""

from enum import Enum


class AuditAction(str, Enum):
    """Audit action enumeration for tracking hierarchy changes."""

    ORG_UNIT_CREATE = "org_unit.create"
    ORG_UNIT_UPDATE = "org_unit.update"
    ORG_UNIT_DELETE = "org_unit.delete"
    ORG_UNIT_HEAD_ASSIGN = "org_unit.head_assign"


class ViolationReason(str, Enum):
    """Why a hierarchy mutation was rejected (metric label and error detail)."""

    SELF_REFERENCE = "self_reference"
    WOULD_CREATE_CYCLE = "would_create_cycle"
    HAS_MEMBERS = "has_members"
    HAS_CHILDREN = "has_children"
    DUPLICATE_NAME = "duplicate_name"
    DUPLICATE_CODE = "duplicate_code"
