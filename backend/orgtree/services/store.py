"""Persistence contracts consumed by the hierarchy services.

Services receive these collaborators through their constructors; the
SQLAlchemy implementations live in ``sql_store`` and tests substitute
in-memory fakes.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import MemberSummary


class UnitStore(ABC):
    """Entity store for org units."""

    @abstractmethod
    async def find_by_id(self, unit_id: UUID) -> OrgUnit | None:
        pass

    @abstractmethod
    async def find_by_name(self, name: str) -> OrgUnit | None:
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> OrgUnit | None:
        pass

    @abstractmethod
    async def list_children(self, parent_id: UUID) -> list[OrgUnit]:
        pass

    @abstractmethod
    async def list_roots(self) -> list[OrgUnit]:
        pass

    @abstractmethod
    async def list_all(self) -> list[OrgUnit]:
        """Every unit, ordered by name."""

    @abstractmethod
    async def count_direct_members(self, unit_id: UUID) -> int:
        pass

    @abstractmethod
    async def count_direct_children(self, unit_id: UUID) -> int:
        pass

    @abstractmethod
    async def count_members_by_unit(self) -> dict[UUID, int]:
        """Direct member counts keyed by unit ID (units without members omitted)."""

    @abstractmethod
    async def count_children_by_unit(self) -> dict[UUID, int]:
        """Direct child counts keyed by parent unit ID (leaves omitted)."""

    @abstractmethod
    async def create(self, fields: dict[str, Any]) -> OrgUnit:
        pass

    @abstractmethod
    async def update(self, unit_id: UUID, fields: dict[str, Any]) -> OrgUnit:
        pass

    @abstractmethod
    async def delete(self, unit_id: UUID) -> None:
        pass

    @abstractmethod
    async def lock_hierarchy(self) -> None:
        """Serialize structural changes until the current transaction ends."""


class MemberDirectory(ABC):
    """Read-only view of members owned by the staff module."""

    @abstractmethod
    async def exists(self, member_id: UUID) -> bool:
        pass

    @abstractmethod
    async def summary(self, member_id: UUID) -> MemberSummary | None:
        pass

    @abstractmethod
    async def summaries(self, member_ids: Iterable[UUID]) -> dict[UUID, MemberSummary]:
        """Bulk variant of ``summary``; unknown IDs are left out."""

    @abstractmethod
    async def list_by_unit(self, unit_id: UUID) -> list[MemberSummary]:
        """Members whose ``unit_id`` is ``unit_id``, ordered by last then first name."""
