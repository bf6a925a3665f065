"""Member model.

Members are owned by the staff module; this service only counts them per
unit and reads their display fields for head summaries.
"""
from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from orgtree.models.base import BaseModel


class Member(BaseModel):
    """A person who may belong to a unit or head one."""

    __tablename__ = "members"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    avatar = Column(String(512), nullable=True)
    unit_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("org_units.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    unit = relationship("OrgUnit", back_populates="members")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, unit_id={self.unit_id})>"
