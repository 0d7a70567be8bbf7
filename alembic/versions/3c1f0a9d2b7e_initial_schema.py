"""initial_schema

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-19 10:02:11.418305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UPDATED_AT_TABLES = ('roadmaps', 'roadmap_progress', 'video_pages', 'account_settings')


def _uuid_pk():
    return sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamps(updated=True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return columns


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'accounts',
        _uuid_pk(),
        sa.Column('username', sa.String(length=255), nullable=False, unique=True),
        sa.Column('credential_hash', sa.String(length=255), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_table(
        'topics',
        _uuid_pk(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index('ix_topics_account_id', 'topics', ['account_id'])

    op.create_table(
        'roadmaps',
        _uuid_pk(),
        sa.Column('topic_id', sa.Uuid(), sa.ForeignKey('topics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('roadmap_data', postgresql.JSONB(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_roadmaps_topic_id', 'roadmaps', ['topic_id'])

    op.create_table(
        'roadmap_progress',
        _uuid_pk(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('roadmap_id', sa.Uuid(), sa.ForeignKey('roadmaps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('point_id', sa.String(length=255), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('account_id', 'roadmap_id', 'point_id', name='uq_progress_account_roadmap_point'),
    )
    op.create_index('ix_roadmap_progress_account_id', 'roadmap_progress', ['account_id'])
    op.create_index('ix_roadmap_progress_roadmap_id', 'roadmap_progress', ['roadmap_id'])

    op.create_table(
        'video_pages',
        sa.Column('roadmap_id', sa.Uuid(), sa.ForeignKey('roadmaps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level', sa.String(length=64), nullable=False),
        sa.Column('page_number', sa.Integer(), nullable=False),
        sa.Column('generation_number', sa.Integer(), nullable=False),
        sa.Column('video_data', postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('roadmap_id', 'level', 'page_number', 'generation_number'),
        sa.CheckConstraint('page_number > 0', name='ck_video_pages_page_number_positive'),
        sa.CheckConstraint('generation_number > 0', name='ck_video_pages_generation_number_positive'),
    )

    op.create_table(
        'account_settings',
        _uuid_pk(),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('theme', sa.Enum('light', 'dark', name='theme_enum'), nullable=False, server_default='light'),
        sa.Column(
            'roadmap_depth',
            sa.Enum('basic', 'detailed', 'comprehensive', name='roadmap_depth_enum'),
            nullable=False,
            server_default='detailed',
        ),
        sa.Column(
            'video_length',
            sa.Enum('short', 'medium', 'long', name='video_length_enum'),
            nullable=False,
            server_default='medium',
        ),
        *_timestamps(),
    )

    if op.get_bind().dialect.name == 'postgresql':
        # updated_at maintained by the database for every UPDATE, whatever issued it
        op.execute(
            """
            CREATE OR REPLACE FUNCTION set_updated_at()
            RETURNS TRIGGER AS $$
            BEGIN
                NEW.updated_at = now();
                RETURN NEW;
            END;
            $$ LANGUAGE plpgsql;
            """
        )
        for table in UPDATED_AT_TABLES:
            op.execute(
                f"CREATE TRIGGER {table}_set_updated_at BEFORE UPDATE ON {table} "
                f"FOR EACH ROW EXECUTE FUNCTION set_updated_at();"
            )


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name == 'postgresql':
        for table in UPDATED_AT_TABLES:
            op.execute(f"DROP TRIGGER IF EXISTS {table}_set_updated_at ON {table};")
        op.execute("DROP FUNCTION IF EXISTS set_updated_at();")

    op.drop_table('account_settings')
    op.drop_table('video_pages')
    op.drop_index('ix_roadmap_progress_roadmap_id', table_name='roadmap_progress')
    op.drop_index('ix_roadmap_progress_account_id', table_name='roadmap_progress')
    op.drop_table('roadmap_progress')
    op.drop_index('ix_roadmaps_topic_id', table_name='roadmaps')
    op.drop_table('roadmaps')
    op.drop_index('ix_topics_account_id', table_name='topics')
    op.drop_table('topics')
    op.drop_table('accounts')

    if op.get_bind().dialect.name == 'postgresql':
        for enum_name in ('video_length_enum', 'roadmap_depth_enum', 'theme_enum'):
            op.execute(f"DROP TYPE IF EXISTS {enum_name};")
