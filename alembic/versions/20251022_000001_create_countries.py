"""create countries table

Revision ID: 20251022_000001
Revises:
Create Date: 2025-10-22 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20251022_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'countries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('name_key', sa.String(255), nullable=False),
        sa.Column('capital', sa.String(255), nullable=True),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('population', sa.BigInteger(), nullable=False),
        sa.Column('currency_code', sa.String(10), nullable=True),
        sa.Column('exchange_rate', sa.Float(), nullable=True),
        sa.Column('estimated_gdp', sa.Float(), nullable=True),
        sa.Column('flag_url', sa.Text(), nullable=True),
        sa.Column('last_refreshed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index(op.f('ix_countries_id'), 'countries', ['id'], unique=False)
    op.create_index(op.f('ix_countries_name_key'), 'countries', ['name_key'], unique=True)
    op.create_index(op.f('ix_countries_currency_code'), 'countries', ['currency_code'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_countries_currency_code'), table_name='countries')
    op.drop_index(op.f('ix_countries_name_key'), table_name='countries')
    op.drop_index(op.f('ix_countries_id'), table_name='countries')
    op.drop_table('countries')
