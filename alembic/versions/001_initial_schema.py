"""Initial schema: items, comments and audit logs.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-13

This migration creates:
- items table with the four-stage lifecycle (status1..status4)
- comments table (append-only, cascades with its item)
- audit_logs table (item_id is not a foreign key so entries survive deletes)
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # Enum types
    # ==========================================================================
    itemstatus = postgresql.ENUM('status1', 'status2', 'status3', 'status4', name='itemstatus')
    rygstatus = postgresql.ENUM('red', 'yellow', 'green', name='rygstatus')
    itemstatus.create(op.get_bind(), checkfirst=True)
    rygstatus.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # items
    # ==========================================================================
    op.create_table(
        'items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('status', postgresql.ENUM(name='itemstatus', create_type=False),
                  nullable=False, server_default='status1'),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('now()'), nullable=False),
        sa.Column('f1_locked_at', sa.DateTime, nullable=True),
        sa.Column('owner_id', sa.String(100), nullable=False),
        sa.Column('problem', sa.Text, nullable=True),
        sa.Column('user_ctx', sa.Text, nullable=True),
        sa.Column('min_solution', sa.Text, nullable=True),
        sa.Column('current_solution', sa.Text, nullable=True),
        sa.Column('resource_assessment', sa.Text, nullable=True),
        sa.Column('kpi_name', sa.String(200), nullable=True),
        sa.Column('kpi_baseline', sa.String(200), nullable=True),
        sa.Column('kpi_target', sa.String(200), nullable=True),
        sa.Column('first_measure_due', sa.Date, nullable=True),
        sa.Column('risk_note', sa.Text, nullable=True),
        sa.Column('pii_flag', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('rbac_note', sa.Text, nullable=True),
        sa.Column('artefact_url', sa.String(500), nullable=True),
        sa.Column('timebox_from', sa.Date, nullable=True),
        sa.Column('timebox_to', sa.Date, nullable=True),
        sa.Column('good_enough_demo', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('good_enough_measure', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('good_enough_log', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('stopp_reason', sa.Text, nullable=True),
        sa.Column('ryg_status', postgresql.ENUM(name='rygstatus', create_type=False), nullable=True),
        sa.Column('tags', postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
    )
    op.create_index('ix_items_status', 'items', ['status'])
    op.create_index('ix_items_created_at', 'items', ['created_at'])
    op.create_index('ix_items_owner_id', 'items', ['owner_id'])

    # ==========================================================================
    # comments
    # ==========================================================================
    op.create_table(
        'comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('now()'), nullable=False, index=True),
    )

    # ==========================================================================
    # audit_logs
    # ==========================================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('item_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('old_value', postgresql.JSONB, nullable=True),
        sa.Column('new_value', postgresql.JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('now()'), nullable=False, index=True),
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('comments')
    op.drop_index('ix_items_owner_id', table_name='items')
    op.drop_index('ix_items_created_at', table_name='items')
    op.drop_index('ix_items_status', table_name='items')
    op.drop_table('items')
    op.execute("DROP TYPE IF EXISTS rygstatus")
    op.execute("DROP TYPE IF EXISTS itemstatus")
