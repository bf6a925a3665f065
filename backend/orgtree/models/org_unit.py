"""Organizational unit model."""
from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from orgtree.models.base import BaseModel


class OrgUnit(BaseModel):
    """A node of the department hierarchy.

    ``parent_id`` points at the enclosing unit (``None`` for a root).
    ``head_id`` is a weak reference to a member: it is not a foreign key,
    so member records can come and go without touching the unit.
    """

    __tablename__ = "org_units"

    name = Column(String(255), nullable=False, unique=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("org_units.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    head_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    # Relationships
    parent = relationship(
        "OrgUnit",
        remote_side="OrgUnit.id",
        back_populates="children",
    )
    children = relationship(
        "OrgUnit",
        back_populates="parent",
        passive_deletes="all",
    )
    members = relationship(
        "Member",
        back_populates="unit",
        passive_deletes="all",
    )

    __table_args__ = (
        CheckConstraint("LENGTH(name) > 0", name="org_unit_name_not_empty"),
        CheckConstraint("LENGTH(code) > 0", name="org_unit_code_not_empty"),
        CheckConstraint("parent_id IS NULL OR parent_id <> id", name="org_unit_not_own_parent"),
    )

    def __repr__(self) -> str:
        return f"<OrgUnit(id={self.id}, code={self.code}, parent_id={self.parent_id})>"
