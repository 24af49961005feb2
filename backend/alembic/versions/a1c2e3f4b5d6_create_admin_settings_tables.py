"""create_admin_settings_tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create admin_settings and admin_setting_history tables."""
    op.create_table(
        'admin_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('validation_rules', sa.JSON(), nullable=True),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('is_encrypted', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_admin_settings'),
    )
    op.create_index('ix_admin_settings_key', 'admin_settings', ['key'], unique=True)
    op.create_index('ix_admin_settings_group', 'admin_settings', ['group'], unique=False)

    op.create_table(
        'admin_setting_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('setting_id', sa.Integer(), nullable=False),
        sa.Column('changed_by', sa.String(length=255), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('change_reason', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['setting_id'], ['admin_settings.id'],
            name='fk_admin_setting_history_setting_id_admin_settings',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_admin_setting_history'),
    )
    op.create_index(
        'ix_admin_setting_history_setting_id', 'admin_setting_history', ['setting_id'], unique=False
    )
    op.create_index(
        'ix_admin_setting_history_created_at', 'admin_setting_history', ['created_at'], unique=False
    )


def downgrade() -> None:
    """Drop admin_setting_history and admin_settings tables."""
    op.drop_index('ix_admin_setting_history_created_at', table_name='admin_setting_history')
    op.drop_index('ix_admin_setting_history_setting_id', table_name='admin_setting_history')
    op.drop_table('admin_setting_history')
    op.drop_index('ix_admin_settings_group', table_name='admin_settings')
    op.drop_index('ix_admin_settings_key', table_name='admin_settings')
    op.drop_table('admin_settings')
