"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - short_links table: Short code / alias -> target URL, plus click counters
    - collections table: Named groups of links
    - link_analytics table: One analytics document per link
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'short_links' not in existing_tables:
        op.create_table(
            'short_links',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('owner_id', sa.String(length=64), nullable=False),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('target_url', sa.Text(), nullable=False),
            sa.Column('short_code', sa.String(length=30), nullable=False),
            sa.Column('custom_alias', sa.String(length=30), nullable=True),
            sa.Column('password_hash', sa.String(length=128), nullable=True),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('collection_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('unique_visitors', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_clicked_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )

        op.create_index('ix_short_links_short_code', 'short_links', ['short_code'], unique=True)
        op.create_index('ix_short_links_custom_alias', 'short_links', ['custom_alias'], unique=True)
        op.create_index('ix_short_links_owner_id', 'short_links', ['owner_id'])
        op.create_index('ix_short_links_collection_id', 'short_links', ['collection_id'])
        op.create_index('ix_short_links_expires_at', 'short_links', ['expires_at'])
        op.create_index('ix_short_links_is_active', 'short_links', ['is_active'])
        op.create_index('ix_short_links_created_at', 'short_links', ['created_at'])

    if 'collections' not in existing_tables:
        op.create_table(
            'collections',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('owner_id', sa.String(length=64), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('slug', sa.String(length=200), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )

        op.create_index('ix_collections_owner_id', 'collections', ['owner_id'])
        op.create_index('ix_collections_slug', 'collections', ['slug'])

    if 'link_analytics' not in existing_tables:
        op.create_table(
            'link_analytics',
            sa.Column('link_id', sa.Integer(), nullable=False, autoincrement=False),
            sa.Column('owner_id', sa.String(length=64), nullable=False),
            sa.Column('total_clicks', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('unique_visitors', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('clicks_by_date', sa.JSON(), nullable=False),
            sa.Column('clicks_by_hour', sa.JSON(), nullable=False),
            sa.Column('clicks_by_day', sa.JSON(), nullable=False),
            sa.Column('device_breakdown', sa.JSON(), nullable=False),
            sa.Column('browser_breakdown', sa.JSON(), nullable=False),
            sa.Column('os_breakdown', sa.JSON(), nullable=False),
            sa.Column('country_breakdown', sa.JSON(), nullable=False),
            sa.Column('city_breakdown', sa.JSON(), nullable=False),
            sa.Column('referrer_breakdown', sa.JSON(), nullable=False),
            sa.Column('unique_visitor_ids', sa.JSON(), nullable=False),
            sa.Column('last_clicked_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('link_id')
        )

        op.create_index('ix_link_analytics_owner_id', 'link_analytics', ['owner_id'])


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_link_analytics_owner_id', table_name='link_analytics')
    op.drop_table('link_analytics')

    op.drop_index('ix_collections_slug', table_name='collections')
    op.drop_index('ix_collections_owner_id', table_name='collections')
    op.drop_table('collections')

    for index in (
        'ix_short_links_created_at',
        'ix_short_links_is_active',
        'ix_short_links_expires_at',
        'ix_short_links_collection_id',
        'ix_short_links_owner_id',
        'ix_short_links_custom_alias',
        'ix_short_links_short_code',
    ):
        op.drop_index(index, table_name='short_links')
    op.drop_table('short_links')
