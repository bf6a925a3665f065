"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator, Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from orgtree.core.database import get_db
from orgtree.main import app
from orgtree.models.base import Base
from orgtree.models.enums import AuditAction
from orgtree.models.member import Member
from orgtree.models.org_unit import OrgUnit
from orgtree.schemas.org_unit import MemberSummary
from orgtree.services.org_unit_service import OrgUnitService
from orgtree.services.store import MemberDirectory, UnitStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# In-memory collaborators for service-level tests
# ---------------------------------------------------------------------------


class InMemoryMemberDirectory(MemberDirectory):
    """Member directory backed by a dict of transient Member objects."""

    def __init__(self):
        self.members: dict[UUID, Member] = {}

    def add(
        self,
        first_name: str = "Test",
        last_name: str = "Member",
        unit_id: UUID | None = None,
        avatar: str | None = None,
    ) -> Member:
        member = Member(
            id=uuid4(),
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            unit_id=unit_id,
        )
        self.members[member.id] = member
        return member

    def remove(self, member_id: UUID) -> None:
        self.members.pop(member_id, None)

    async def exists(self, member_id: UUID) -> bool:
        return member_id in self.members

    async def summary(self, member_id: UUID) -> MemberSummary | None:
        member = self.members.get(member_id)
        return MemberSummary.model_validate(member) if member is not None else None

    async def summaries(self, member_ids: Iterable[UUID]) -> dict[UUID, MemberSummary]:
        return {
            member_id: MemberSummary.model_validate(self.members[member_id])
            for member_id in set(member_ids)
            if member_id in self.members
        }

    async def list_by_unit(self, unit_id: UUID) -> list[MemberSummary]:
        return [
            MemberSummary.model_validate(member)
            for member in sorted(
                self.members.values(),
                key=lambda m: (m.last_name, m.first_name),
            )
            if member.unit_id == unit_id
        ]


class InMemoryUnitStore(UnitStore):
    """Unit store keeping transient OrgUnit objects in insertion order."""

    def __init__(self, directory: InMemoryMemberDirectory):
        self.directory = directory
        self.units: dict[UUID, OrgUnit] = {}
        self.lock_calls = 0
        self.list_all_calls = 0
        self.writes = 0

    async def find_by_id(self, unit_id: UUID) -> OrgUnit | None:
        return self.units.get(unit_id)

    async def find_by_name(self, name: str) -> OrgUnit | None:
        return next((u for u in self.units.values() if u.name == name), None)

    async def find_by_code(self, code: str) -> OrgUnit | None:
        return next((u for u in self.units.values() if u.code == code), None)

    async def list_children(self, parent_id: UUID) -> list[OrgUnit]:
        return sorted(
            (u for u in self.units.values() if u.parent_id == parent_id),
            key=lambda u: u.name,
        )

    async def list_roots(self) -> list[OrgUnit]:
        return sorted(
            (u for u in self.units.values() if u.parent_id is None),
            key=lambda u: u.name,
        )

    async def list_all(self) -> list[OrgUnit]:
        self.list_all_calls += 1
        return sorted(self.units.values(), key=lambda u: u.name)

    async def count_direct_members(self, unit_id: UUID) -> int:
        return sum(1 for m in self.directory.members.values() if m.unit_id == unit_id)

    async def count_direct_children(self, unit_id: UUID) -> int:
        return sum(1 for u in self.units.values() if u.parent_id == unit_id)

    async def count_members_by_unit(self) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for member in self.directory.members.values():
            if member.unit_id is not None:
                counts[member.unit_id] = counts.get(member.unit_id, 0) + 1
        return counts

    async def count_children_by_unit(self) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for unit in self.units.values():
            if unit.parent_id is not None:
                counts[unit.parent_id] = counts.get(unit.parent_id, 0) + 1
        return counts

    async def create(self, fields: dict[str, Any]) -> OrgUnit:
        now = datetime.now(UTC)
        unit = OrgUnit(id=uuid4(), created_at=now, updated_at=now, **fields)
        self.units[unit.id] = unit
        self.writes += 1
        return unit

    async def update(self, unit_id: UUID, fields: dict[str, Any]) -> OrgUnit:
        unit = self.units[unit_id]
        for field, value in fields.items():
            setattr(unit, field, value)
        unit.updated_at = datetime.now(UTC)
        self.writes += 1
        return unit

    async def delete(self, unit_id: UUID) -> None:
        del self.units[unit_id]
        self.writes += 1

    async def lock_hierarchy(self) -> None:
        self.lock_calls += 1


class RecordingAudit:
    """Collects audit calls instead of writing AuditEvent rows."""

    def __init__(self):
        self.events: list[dict[str, Any]] = []

    async def log(
        self,
        action: AuditAction,
        entity_id: UUID,
        entity_type: str = "org_unit",
        diff_json: dict[str, Any] | None = None,
    ) -> None:
        self.events.append(
            {
                "action": action,
                "entity_id": entity_id,
                "entity_type": entity_type,
                "diff_json": diff_json,
            }
        )


@pytest.fixture()
def member_directory() -> InMemoryMemberDirectory:
    return InMemoryMemberDirectory()


@pytest.fixture()
def unit_store(member_directory: InMemoryMemberDirectory) -> InMemoryUnitStore:
    return InMemoryUnitStore(member_directory)


@pytest.fixture()
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture()
def service(
    unit_store: InMemoryUnitStore,
    member_directory: InMemoryMemberDirectory,
    audit: RecordingAudit,
) -> OrgUnitService:
    return OrgUnitService(store=unit_store, members=member_directory, audit=audit)


async def create_unit(
    store: InMemoryUnitStore,
    name: str,
    code: str,
    parent: OrgUnit | None = None,
    head_id: UUID | None = None,
    description: str | None = None,
) -> OrgUnit:
    """OrgUnit factory writing straight to the in-memory store (no validation)."""
    return await store.create(
        {
            "name": name,
            "code": code,
            "description": description,
            "parent_id": parent.id if parent is not None else None,
            "head_id": head_id,
        }
    )


@pytest_asyncio.fixture
async def chain(unit_store: InMemoryUnitStore) -> tuple[OrgUnit, OrgUnit, OrgUnit]:
    """A (root) <- B <- C."""
    a = await create_unit(unit_store, "A", "A")
    b = await create_unit(unit_store, "B", "B", parent=a)
    c = await create_unit(unit_store, "C", "C", parent=b)
    return a, b, c


# ---------------------------------------------------------------------------
# Database-backed fixtures for integration and contract tests
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory SQLite database.

    Tables are created before each test and the engine is disposed after,
    so every test starts from an empty hierarchy.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database dependency override.

    Args:
        db: Test database session

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_member(
    db: AsyncSession,
    first_name: str = "Jane",
    last_name: str = "Doe",
    unit_id: UUID | None = None,
    avatar: str | None = None,
) -> Member:
    """Member factory for database-backed tests.

    Args:
        db: Database session
        first_name: Given name
        last_name: Family name
        unit_id: Unit the member belongs to (None = unassigned)
        avatar: Avatar URL

    Returns:
        Created Member instance
    """
    member = Member(
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{last_name.lower()}@example.com",
        avatar=avatar,
        unit_id=unit_id,
    )
    db.add(member)
    await db.flush()
    return member
