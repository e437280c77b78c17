"""Initial schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users table (id is the identity provider's subject)
    op.create_table(
        'users',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # Groups
    op.create_table(
        'groups',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('created_by_user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_groups_created_by_user_id', 'groups', ['created_by_user_id'])

    op.create_table(
        'group_members',
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('group_id', sa.String(12), sa.ForeignKey('groups.id', ondelete='CASCADE'), primary_key=True),
        *_timestamps(),
    )
    op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])

    # Game templates
    op.create_table(
        'game_templates',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('game_type', sa.String(30), nullable=False),
        sa.Column('location_latitude', sa.Numeric(10, 8), nullable=False),
        sa.Column('location_longitude', sa.Numeric(11, 8), nullable=False),
        sa.Column('location_name', sa.Text, nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('created_by_user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_game_templates_created_by_user_id', 'game_templates', ['created_by_user_id'])

    op.create_table(
        'game_template_teams',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('template_id', sa.String(12), sa.ForeignKey('game_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(30), nullable=True),
        sa.Column('position', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_game_template_teams_template_id', 'game_template_teams', ['template_id'])

    op.create_table(
        'game_template_invitations',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('template_id', sa.String(12), sa.ForeignKey('game_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('group_id', sa.String(12), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=True),
        sa.Column('team_id', sa.String(12), sa.ForeignKey('game_template_teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint(
            '(user_id IS NOT NULL) != (group_id IS NOT NULL)',
            name='ck_template_invitation_user_xor_group',
        ),
        sa.UniqueConstraint('template_id', 'user_id', 'group_id', name='uq_template_invitation'),
    )
    op.create_index('ix_game_template_invitations_template_id', 'game_template_invitations', ['template_id'])

    # Recurring series
    op.create_table(
        'recurring_games',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('template_id', sa.String(12), sa.ForeignKey('game_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cron_schedule', sa.String(120), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=True),
        sa.Column('last_generated_date', sa.Date, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_recurring_games_template_id', 'recurring_games', ['template_id'])

    # Games
    op.create_table(
        'games',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('template_id', sa.String(12), sa.ForeignKey('game_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recurring_game_id', sa.String(12), sa.ForeignKey('recurring_games.id', ondelete='CASCADE'), nullable=True),
        sa.Column('scheduled_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('occurrence_date', sa.Date, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        *_timestamps(),
        sa.UniqueConstraint('recurring_game_id', 'occurrence_date', name='uq_game_occurrence'),
    )
    op.create_index('ix_games_template_id', 'games', ['template_id'])
    op.create_index('ix_games_recurring_game_id', 'games', ['recurring_game_id'])
    op.create_index('ix_games_scheduled_time', 'games', ['scheduled_time'])
    op.create_index('ix_games_occurrence_date', 'games', ['occurrence_date'])

    op.create_table(
        'game_teams',
        sa.Column('id', sa.String(12), primary_key=True),
        sa.Column('game_id', sa.String(12), sa.ForeignKey('games.id', ondelete='CASCADE'), nullable=False),
        sa.Column('template_team_id', sa.String(12), sa.ForeignKey('game_template_teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(30), nullable=True),
        sa.Column('position', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_game_teams_game_id', 'game_teams', ['game_id'])

    # Invitations
    op.create_table(
        'game_invitations',
        sa.Column('game_id', sa.String(12), sa.ForeignKey('games.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('team_id', sa.String(12), sa.ForeignKey('game_teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.String(12), sa.ForeignKey('groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('invited_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_game_invitations_user_id', 'game_invitations', ['user_id'])
    op.create_index('ix_game_invitations_team_id', 'game_invitations', ['team_id'])
    op.create_index('ix_game_invitations_status', 'game_invitations', ['status'])

    op.create_table(
        'group_game_invitations',
        sa.Column('game_id', sa.String(12), sa.ForeignKey('games.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('group_id', sa.String(12), sa.ForeignKey('groups.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('invited_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_group_game_invitations_game_id', 'group_game_invitations', ['game_id'])
    op.create_index('ix_group_game_invitations_group_id', 'group_game_invitations', ['group_id'])


def downgrade() -> None:
    raise NotImplementedError("Migrations are forward-only")
