"""Create org unit tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create org unit, member and audit tables."""
    # Create UUID extension if not exists
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Create org_units table (self-referencing; head_id is intentionally not a FK)
    op.create_table(
        'org_units',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('org_units.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('head_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint('LENGTH(name) > 0', name='org_unit_name_not_empty'),
        sa.CheckConstraint('LENGTH(code) > 0', name='org_unit_code_not_empty'),
        sa.CheckConstraint('parent_id IS NULL OR parent_id <> id', name='org_unit_not_own_parent'),
    )
    op.create_index('idx_org_units_name', 'org_units', ['name'], unique=True)
    op.create_index('idx_org_units_code', 'org_units', ['code'], unique=True)
    op.create_index('idx_org_units_parent_id', 'org_units', ['parent_id'])
    op.create_index('idx_org_units_head_id', 'org_units', ['head_id'])

    # Create members table
    op.create_table(
        'members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('avatar', sa.String(512), nullable=True),
        sa.Column('unit_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('org_units.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('idx_members_unit_id', 'members', ['unit_id'])

    # Create audit_events table
    op.create_table(
        'audit_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('diff_json', postgresql.JSONB, nullable=True),
        sa.Column('request_id', sa.String(128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('idx_audit_events_entity', 'audit_events', ['entity_type', 'entity_id'])
    op.create_index('idx_audit_events_created_at', 'audit_events', ['created_at'])

    # Create trigger to prevent UPDATE/DELETE on audit_events
    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_audit_modification()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Audit events cannot be modified or deleted';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER prevent_audit_update
        BEFORE UPDATE ON audit_events
        FOR EACH ROW EXECUTE FUNCTION prevent_audit_modification();
    """)
    op.execute("""
        CREATE TRIGGER prevent_audit_delete
        BEFORE DELETE ON audit_events
        FOR EACH ROW EXECUTE FUNCTION prevent_audit_modification();
    """)


def downgrade() -> None:
    """Drop org unit, member and audit tables."""
    op.execute('DROP TRIGGER IF EXISTS prevent_audit_delete ON audit_events')
    op.execute('DROP TRIGGER IF EXISTS prevent_audit_update ON audit_events')
    op.execute('DROP FUNCTION IF EXISTS prevent_audit_modification()')

    op.drop_table('audit_events')
    op.drop_table('members')
    op.drop_table('org_units')
