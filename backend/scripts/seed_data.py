"""Seed script for development data.

Creates a small department tree:
- Executive
  - Sales (with Sales-East and Sales-West)
  - Engineering (with Platform)

plus one head member per top-level department.

Can be run multiple times safely (skips units whose code exists).
"""
import os
import sys
from pathlib import Path
import asyncio

# Add backend/ to path so ``orgtree`` imports without installation
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from orgtree.core.database import get_db
from orgtree.models.member import Member
from orgtree.schemas.org_unit import CreateOrgUnitRequest
from orgtree.services.audit_service import AuditService
from orgtree.services.org_unit_service import OrgUnitService
from orgtree.services.sql_store import SqlMemberDirectory, SqlUnitStore

# (name, code, parent code, head first/last name)
SEED_UNITS = [
    ("Executive", "EXEC", None, ("Erin", "Chief")),
    ("Sales", "SLS", "EXEC", ("Sam", "Seller")),
    ("Sales-East", "SLE", "SLS", None),
    ("Sales-West", "SLW", "SLS", None),
    ("Engineering", "ENG", "EXEC", ("Grace", "Hopper")),
    ("Platform", "PLT", "ENG", None),
]


async def seed_data():
    """Seed development data."""
    print("Starting database seeding...")
    domain = os.environ.get("SEED_EMAIL_DOMAIN", "orgtree.local")

    async for db in get_db():
        store = SqlUnitStore(db)
        service = OrgUnitService(store, SqlMemberDirectory(db), AuditService(db))

        for name, code, parent_code, head in SEED_UNITS:
            existing = await store.find_by_code(code)
            if existing:
                print(f"✓ Org unit '{code}' already exists (ID: {existing.id})")
                continue

            parent = await store.find_by_code(parent_code) if parent_code else None
            head_id = None
            if head:
                first_name, last_name = head
                member = Member(
                    first_name=first_name,
                    last_name=last_name,
                    email=f"{first_name.lower()}.{last_name.lower()}@{domain}",
                )
                db.add(member)
                await db.flush()  # Get member.id for the head reference
                head_id = member.id

            unit = await service.create(
                CreateOrgUnitRequest(
                    name=name,
                    code=code,
                    parent_id=parent.id if parent else None,
                    head_id=head_id,
                )
            )
            print(f"✓ Created org unit '{name}' (ID: {unit.id})")

    print("\n✓ Database seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_data())
