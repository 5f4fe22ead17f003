"""create games, teams, players and messages tables

Revision ID: 4c1d9a7e2b10
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1d9a7e2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'games',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('settings', sa.Text(), nullable=True),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_games_code', 'games', ['code'], unique=True)

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('level1_data', sa.Text(), nullable=True),
        sa.Column('level2_data', sa.Text(), nullable=True),
        sa.Column('level3_data', sa.Text(), nullable=True),
    )
    op.create_index('ix_teams_game_id', 'teams', ['game_id'])

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('games.id'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('telegram_id', sa.String(length=64), nullable=True),
        sa.Column('socket_id', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('left_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_players_game_id', 'players', ['game_id'])
    op.create_index('ix_players_socket_id', 'players', ['socket_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('player_name', sa.String(length=64), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_messages_team_id', 'messages', ['team_id'])


def downgrade():
    op.drop_index('ix_messages_team_id', table_name='messages')
    op.drop_table('messages')
    op.drop_index('ix_players_socket_id', table_name='players')
    op.drop_index('ix_players_game_id', table_name='players')
    op.drop_table('players')
    op.drop_index('ix_teams_game_id', table_name='teams')
    op.drop_table('teams')
    op.drop_index('ix_games_code', table_name='games')
    op.drop_table('games')
