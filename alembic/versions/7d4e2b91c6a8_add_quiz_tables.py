"""add_quiz_tables

Revision ID: 7d4e2b91c6a8
Revises: 3c1f0a9d2b7e
Create Date: 2026-10-19 14:37:52.906114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7d4e2b91c6a8'
down_revision: Union[str, None] = '3c1f0a9d2b7e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UPDATED_AT_TABLES = ('quizzes', 'quiz_progress')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'quizzes',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('roadmap_id', sa.Uuid(), sa.ForeignKey('roadmaps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quiz_data', postgresql.JSONB(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('difficulty_level', sa.String(length=32), nullable=False, server_default='mixed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('total_questions > 0', name='ck_quizzes_total_questions_positive'),
    )
    op.create_index('ix_quizzes_roadmap_id', 'quizzes', ['roadmap_id'])

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('quiz_id', sa.Uuid(), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.Column('user_answers', postgresql.JSONB(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.Integer(), nullable=False),
        sa.Column('time_taken', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('quiz_id', 'account_id', 'attempt_number', name='uq_quiz_attempts_number'),
        sa.CheckConstraint('attempt_number > 0', name='ck_quiz_attempts_number_positive'),
        sa.CheckConstraint('score >= 0 AND score <= total_questions', name='ck_quiz_attempts_score_range'),
    )
    op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'])
    op.create_index('ix_quiz_attempts_account_id', 'quiz_attempts', ['account_id'])

    op.create_table(
        'quiz_progress',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('quiz_id', sa.Uuid(), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_index', sa.Integer(), nullable=False),
        sa.Column('selected_option', sa.Integer(), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('quiz_id', 'account_id', 'question_index', name='uq_quiz_progress_question'),
        sa.CheckConstraint('question_index >= 0', name='ck_quiz_progress_question_index'),
        sa.CheckConstraint('selected_option >= 0', name='ck_quiz_progress_selected_option'),
    )
    op.create_index('ix_quiz_progress_quiz_id', 'quiz_progress', ['quiz_id'])

    op.create_table(
        'used_questions',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('roadmap_id', sa.Uuid(), sa.ForeignKey('roadmaps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_hash', sa.String(length=64), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('account_id', 'roadmap_id', 'question_hash', name='uq_used_questions_hash'),
    )
    op.create_index('ix_used_questions_roadmap_id', 'used_questions', ['roadmap_id'])

    if op.get_bind().dialect.name == 'postgresql':
        # set_updated_at() comes from the initial schema
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

    op.drop_index('ix_used_questions_roadmap_id', table_name='used_questions')
    op.drop_table('used_questions')
    op.drop_index('ix_quiz_progress_quiz_id', table_name='quiz_progress')
    op.drop_table('quiz_progress')
    op.drop_index('ix_quiz_attempts_account_id', table_name='quiz_attempts')
    op.drop_index('ix_quiz_attempts_quiz_id', table_name='quiz_attempts')
    op.drop_table('quiz_attempts')
    op.drop_index('ix_quizzes_roadmap_id', table_name='quizzes')
    op.drop_table('quizzes')
