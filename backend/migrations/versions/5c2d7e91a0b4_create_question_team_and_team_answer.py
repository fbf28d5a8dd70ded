"""create question, team and team_answer tables

Revision ID: 5c2d7e91a0b4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e91a0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'question' not in existing_tables:
        op.create_table(
            'question',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('lat', sa.Float(), nullable=False),
            sa.Column('lng', sa.Float(), nullable=False),
            sa.Column('answer', sa.String(length=256), nullable=False),
            sa.Column('hints', sa.Text(), nullable=True),
            sa.Column('clue_index', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('points', sa.Integer(), nullable=True),
        )

    if 'team' not in existing_tables:
        op.create_table(
            'team',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        )

    if 'team_answer' not in existing_tables:
        op.create_table(
            'team_answer',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('team_id', sa.String(length=64), sa.ForeignKey('team.id'), nullable=False),
            sa.Column('question_id', sa.String(length=64), nullable=False),
            sa.Column('answered_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('team_id', 'question_id', name='uq_team_answer_team_question'),
        )
        op.create_index('ix_team_answer_team_id', 'team_answer', ['team_id'])


def downgrade():
    op.drop_index('ix_team_answer_team_id', table_name='team_answer')
    op.drop_table('team_answer')
    op.drop_table('team')
    op.drop_table('question')
