"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2025-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Cart, orders, loyalty points and the outstanding-order index
    # are all stored as JSON values under string keys
    op.create_table(
        'kv_records',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )
    op.create_index(op.f('ix_kv_records_key'), 'kv_records', ['key'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_kv_records_key'), table_name='kv_records')
    op.drop_table('kv_records')
