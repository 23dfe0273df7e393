"""initial_schema

Revision ID: a7c3e91d2f40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7c3e91d2f40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('language', sa.String(length=10), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'polls',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('question', sa.String(length=500), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='multiple'),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('duration_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('creator_id', sa.String(length=64), nullable=False),
        sa.Column('creator_name', sa.String(length=100), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('vote_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('comment_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_sponsored', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_polls_category', 'polls', ['category'])
    op.create_index('idx_polls_created_at', 'polls', ['created_at'])

    op.create_table(
        'votes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('poll_id', sa.String(length=36), sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('guest_id', sa.String(length=64), nullable=True),
        sa.Column('option_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('poll_id', 'user_id', name='uq_vote_poll_user'),
        sa.UniqueConstraint('poll_id', 'guest_id', name='uq_vote_poll_guest'),
        sa.CheckConstraint('(user_id IS NULL) <> (guest_id IS NULL)', name='ck_vote_single_identity'),
        sa.CheckConstraint('option_index >= 0', name='ck_vote_option_index'),
    )
    op.create_index('idx_votes_poll', 'votes', ['poll_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('poll_id', sa.String(length=36), sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('comments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('guest_id', sa.String(length=64), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('creator_name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_comments_poll_created', 'comments', ['poll_id', 'created_at'])
    op.create_index('idx_comments_parent', 'comments', ['parent_id'])

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=False),
        sa.Column('details', sa.String(length=500), nullable=True),
        sa.Column('reporter_id', sa.String(length=64), nullable=True),
        sa.Column('guest_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("target_type IN ('poll', 'comment')", name='ck_report_target_type'),
    )
    op.create_index('idx_reports_target', 'reports', ['target_type', 'target_id'])


def downgrade():
    op.drop_index('idx_reports_target', table_name='reports')
    op.drop_table('reports')
    op.drop_index('idx_comments_parent', table_name='comments')
    op.drop_index('idx_comments_poll_created', table_name='comments')
    op.drop_table('comments')
    op.drop_index('idx_votes_poll', table_name='votes')
    op.drop_table('votes')
    op.drop_index('idx_polls_created_at', table_name='polls')
    op.drop_index('idx_polls_category', table_name='polls')
    op.drop_table('polls')
    op.drop_table('profiles')
