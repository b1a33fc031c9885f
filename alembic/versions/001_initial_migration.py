"""Initial migration

Revision ID: 0001
Revises: 
Create Date: 2025-11-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create configuration_settings table
    op.create_table('configuration_settings',
        sa.Column('config_id', sa.Integer(), nullable=False),
        sa.Column('config_description', sa.String(length=50), nullable=False),
        sa.Column('config_value', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.PrimaryKeyConstraint('config_id'),
        sa.UniqueConstraint('config_description')
    )
    op.create_index(op.f('ix_configuration_settings_config_id'), 'configuration_settings', ['config_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_configuration_settings_config_id'), table_name='configuration_settings')
    op.drop_table('configuration_settings')
