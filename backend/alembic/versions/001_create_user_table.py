"""Create the user table.

Revision ID: 001_create_user
Revises:
Create Date: 2026-10-19

One row per user keyed by the service-generated id. Timestamps are naive
UTC at microsecond precision; country is indexed for filtered listing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_create_user'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('last_name', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(64), nullable=False, server_default=''),
        sa.Column('password_salt', sa.String(32), nullable=False, server_default=''),
        sa.Column('country', sa.String(2), nullable=False),
    )
    op.create_index('ix_user_country', 'user', ['country'])


def downgrade() -> None:
    op.drop_index('ix_user_country', table_name='user')
    op.drop_table('user')
