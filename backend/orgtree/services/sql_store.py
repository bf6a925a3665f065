"""SQLAlchemy-backed unit store and member directory."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree.core.config import get_settings
from orgtree.core.errors import ConflictError, NotFoundError
from orgtree.models.member import Member
from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import MemberSummary
from orgtree.services.store import MemberDirectory, UnitStore

_CONFLICT_DETAIL_FIELDS = ("id", "name", "code", "parent_id")


class SqlUnitStore(UnitStore):
    """Unit store over an async session.

    Writes only flush; committing is left to the request-scoped session so a
    validation and its write share one transaction.
    """

    def __init__(self, db: AsyncSession, lock_key: int | None = None):
        """Initialize unit store.

        Args:
            db: Database session
            lock_key: Advisory lock key (defaults to ``HIERARCHY_LOCK_KEY`` setting)
        """
        self.db = db
        self.lock_key = lock_key if lock_key is not None else get_settings().hierarchy_lock_key

    async def find_by_id(self, unit_id: UUID) -> OrgUnit | None:
        result = await self.db.execute(select(OrgUnit).where(OrgUnit.id == unit_id))
        return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> OrgUnit | None:
        result = await self.db.execute(select(OrgUnit).where(OrgUnit.name == name))
        return result.scalar_one_or_none()

    async def find_by_code(self, code: str) -> OrgUnit | None:
        result = await self.db.execute(select(OrgUnit).where(OrgUnit.code == code))
        return result.scalar_one_or_none()

    async def list_children(self, parent_id: UUID) -> list[OrgUnit]:
        result = await self.db.execute(
            select(OrgUnit).where(OrgUnit.parent_id == parent_id).order_by(OrgUnit.name)
        )
        return list(result.scalars().all())

    async def list_roots(self) -> list[OrgUnit]:
        result = await self.db.execute(
            select(OrgUnit).where(OrgUnit.parent_id.is_(None)).order_by(OrgUnit.name)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[OrgUnit]:
        result = await self.db.execute(select(OrgUnit).order_by(OrgUnit.name))
        return list(result.scalars().all())

    async def count_direct_members(self, unit_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Member).where(Member.unit_id == unit_id)
        )
        return result.scalar() or 0

    async def count_direct_children(self, unit_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(OrgUnit).where(OrgUnit.parent_id == unit_id)
        )
        return result.scalar() or 0

    async def count_members_by_unit(self) -> dict[UUID, int]:
        result = await self.db.execute(
            select(Member.unit_id, func.count())
            .where(Member.unit_id.is_not(None))
            .group_by(Member.unit_id)
        )
        return {unit_id: count for unit_id, count in result.all()}

    async def count_children_by_unit(self) -> dict[UUID, int]:
        result = await self.db.execute(
            select(OrgUnit.parent_id, func.count())
            .where(OrgUnit.parent_id.is_not(None))
            .group_by(OrgUnit.parent_id)
        )
        return {parent_id: count for parent_id, count in result.all()}

    async def create(self, fields: dict[str, Any]) -> OrgUnit:
        unit = OrgUnit(**fields)
        self.db.add(unit)
        await self._flush(fields)
        await self.db.refresh(unit)
        return unit

    async def update(self, unit_id: UUID, fields: dict[str, Any]) -> OrgUnit:
        unit = await self.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError("Org unit not found", {"unit_id": str(unit_id)})

        for field, value in fields.items():
            setattr(unit, field, value)

        await self._flush(fields)
        await self.db.refresh(unit)
        return unit

    async def delete(self, unit_id: UUID) -> None:
        unit = await self.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError("Org unit not found", {"unit_id": str(unit_id)})

        await self.db.delete(unit)
        await self._flush({"id": unit_id})

    async def lock_hierarchy(self) -> None:
        # Other backends serialize writers on their own (SQLite) or are only used in tests
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(select(func.pg_advisory_xact_lock(self.lock_key)))

    async def _flush(self, fields: dict[str, Any]) -> None:
        """Flush pending writes, reporting constraint violations as conflicts.

        The pre-checks in the services catch duplicates and dependents; this
        only fires when a concurrent transaction won the race.
        """
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(
                "Org unit change conflicts with existing data",
                reason="integrity_error",
                details={
                    key: str(value)
                    for key, value in fields.items()
                    if key in _CONFLICT_DETAIL_FIELDS
                },
            ) from exc


class SqlMemberDirectory(MemberDirectory):
    """Member lookups over an async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, member_id: UUID) -> bool:
        result = await self.db.execute(select(Member.id).where(Member.id == member_id))
        return result.scalar_one_or_none() is not None

    async def summary(self, member_id: UUID) -> MemberSummary | None:
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        member = result.scalar_one_or_none()
        if member is None:
            return None
        return MemberSummary.model_validate(member)

    async def summaries(self, member_ids: Iterable[UUID]) -> dict[UUID, MemberSummary]:
        ids = set(member_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Member).where(Member.id.in_(ids)))
        return {
            member.id: MemberSummary.model_validate(member)
            for member in result.scalars().all()
        }

    async def list_by_unit(self, unit_id: UUID) -> list[MemberSummary]:
        result = await self.db.execute(
            select(Member)
            .where(Member.unit_id == unit_id)
            .order_by(Member.last_name, Member.first_name)
        )
        return [MemberSummary.model_validate(member) for member in result.scalars().all()]
