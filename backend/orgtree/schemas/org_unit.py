"""Pydantic schemas for org unit endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_required(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be empty")
    return v.strip()


class CreateOrgUnitRequest(BaseModel):
    """Request schema for creating an org unit."""

    name: str = Field(..., min_length=1, max_length=255, description="Unit name (unique)")
    code: str = Field(..., min_length=1, max_length=50, description="Short unique code")
    description: str | None = Field(None, description="Free-form description")
    parent_id: UUID | None = Field(None, description="Parent unit ID (omit for a root)")
    head_id: UUID | None = Field(None, description="Member heading the unit")

    @field_validator("name", "code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)


class UpdateOrgUnitRequest(BaseModel):
    """Partial update.

    Only fields present in the request body are applied. An explicit
    ``null`` for ``parent_id`` moves the unit to the root level; for
    ``head_id`` and ``description`` it clears the value.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    parent_id: UUID | None = None
    head_id: UUID | None = None

    @field_validator("name", "code")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("cannot be null")
        return _strip_required(v)

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller."""
        return self.model_dump(exclude_unset=True)


class AssignHeadRequest(BaseModel):
    """Body of PUT /org-units/{id}/head; ``null`` clears the head."""

    head_id: UUID | None = Field(..., description="Member ID or null")


class OrgUnitFilter(BaseModel):
    """Explicit filter for flat unit listings.

    ``roots_only`` wins over ``parent_id`` when both are given.
    """

    parent_id: UUID | None = None
    roots_only: bool = False


class UnitSummary(BaseModel):
    """Minimal unit information for embedding in responses."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class MemberSummary(BaseModel):
    """Display fields of a member, joined at read time."""

    id: UUID
    display_name: str
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrgUnitResponse(BaseModel):
    """Unit enriched with parent/head summaries and dependent counts."""

    id: UUID
    name: str
    code: str
    description: str | None = None
    parent_id: UUID | None = None
    head_id: UUID | None = None
    parent: UnitSummary | None = None
    head: MemberSummary | None = None
    member_count: int = 0
    child_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChildUnitSummary(UnitSummary):
    code: str
    member_count: int = 0


class OrgUnitDetailResponse(OrgUnitResponse):
    """Single-unit view including its direct children."""

    children: list[ChildUnitSummary] = Field(default_factory=list)


class OrgUnitTreeNode(BaseModel):
    """Node of the hierarchy response; ``children`` nest to any depth."""

    id: UUID
    name: str
    code: str
    description: str | None = None
    parent_id: UUID | None = None
    head_id: UUID | None = None
    head: MemberSummary | None = None
    member_count: int = 0
    children: list[OrgUnitTreeNode] = Field(default_factory=list)


OrgUnitTreeNode.model_rebuild()
