"""Durable storage for games, teams, players and chat messages.

The repository is the source of truth. Every write commits before it
returns, so callers can broadcast right after a call without exposing
uncommitted state. Counters (team score, current level) are changed with
single conditional ``UPDATE ... RETURNING`` statements so concurrent
requests cannot lose each other's updates.
"""

from contextlib import contextmanager

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from battle.errors import CodeCollision, StorageUnavailable
from battle.models import Game, Message, Player, Team, dump_payload, utcnow


class GameRepository:

    def __init__(self, db):
        self._db = db

    @property
    def session(self):
        return self._db.session

    @contextmanager
    def _guard(self, action):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageUnavailable(f'Storage error while trying to {action}') from exc

    # ---- Reads ----

    def ping(self):
        with self._guard('reach the database'):
            self.session.execute(sa.text('SELECT 1'))

    def get_game(self, code):
        with self._guard('load a game'):
            return Game.query.filter_by(code=code).first()

    def snapshot(self, code):
        """Game with its teams and active players, payloads decoded, or None."""
        with self._guard('load a game snapshot'):
            game = Game.query.filter_by(code=code).first()
            if not game:
                return None
            return game.to_dict()

    def get_team(self, team_id):
        with self._guard('load a team'):
            return self.session.get(Team, team_id)

    def teams_for_game(self, game_id):
        with self._guard('load teams'):
            return Team.query.filter_by(game_id=game_id).order_by(Team.id).all()

    def messages_for_team(self, team_id, limit=50):
        with self._guard('load messages'):
            newest = (
                Message.query.filter_by(team_id=team_id)
                .order_by(Message.id.desc())
                .limit(limit)
                .all()
            )
            return list(reversed(newest))

    # ---- Writes ----

    def create_game(self, code, settings, team_names, initial_score=100):
        """Insert a game and its teams in one transaction.

        Raises CodeCollision (after rollback) when ``code`` is already taken.
        """
        with self._guard('create a game'):
            game = Game(code=code, settings=dump_payload(settings), status='waiting', current_level=0)
            self.session.add(game)
            try:
                self.session.flush()
            except IntegrityError as exc:
                self.session.rollback()
                raise CodeCollision(f'Game code {code} already in use') from exc
            for name in team_names:
                self.session.add(Team(game_id=game.id, name=name, score=initial_score))
            self.session.commit()
            return game

    def add_player(self, game_id, team_id, name, role=None, socket_id=None, telegram_id=None):
        with self._guard('add a player'):
            player = Player(
                game_id=game_id,
                team_id=team_id,
                name=name,
                role=role,
                socket_id=socket_id,
                telegram_id=telegram_id,
                is_active=True,
            )
            self.session.add(player)
            self.session.commit()
            return player

    def deactivate_players(self, socket_id):
        """Mark every active player bound to ``socket_id`` as gone.

        Rows are kept for history; the connection handle is cleared. Returns
        plain dicts describing the released players.
        """
        with self._guard('release players'):
            players = Player.query.filter_by(socket_id=socket_id, is_active=True).all()
            released = []
            for p in players:
                released.append({
                    'id': p.id,
                    'name': p.name,
                    'role': p.role,
                    'team_id': p.team_id,
                    'game_id': p.game_id,
                    'code': p.game.code,
                })
                p.is_active = False
                p.socket_id = None
                p.left_at = utcnow()
            if players:
                self.session.commit()
            return released

    def increment_score(self, team_id, points, game_id=None):
        """Atomically add ``points`` to a team's score.

        Returns the new score, or None when no matching team exists.
        """
        stmt = sa.update(Team).where(Team.id == team_id)
        if game_id is not None:
            stmt = stmt.where(Team.game_id == game_id)
        stmt = stmt.values(score=Team.score + points).returning(Team.score)
        with self._guard('update a score'):
            new_score = self.session.execute(stmt).scalar_one_or_none()
            self.session.commit()
            return new_score

    def start_game(self, code):
        """waiting -> playing at level 1. Returns False if the game was not waiting."""
        stmt = (
            sa.update(Game)
            .where(Game.code == code, Game.status == 'waiting')
            .values(status='playing', current_level=1)
            .returning(Game.id)
        )
        with self._guard('start a game'):
            updated = self.session.execute(stmt).scalar_one_or_none()
            self.session.commit()
            return updated is not None

    def advance_level(self, code):
        """Increment the level of a playing game. Returns the new level or None."""
        stmt = (
            sa.update(Game)
            .where(Game.code == code, Game.status == 'playing')
            .values(current_level=Game.current_level + 1)
            .returning(Game.current_level)
        )
        with self._guard('advance a level'):
            level = self.session.execute(stmt).scalar_one_or_none()
            self.session.commit()
            return level

    def finish_game(self, code):
        stmt = (
            sa.update(Game)
            .where(Game.code == code, Game.status == 'playing')
            .values(status='finished')
            .returning(Game.id)
        )
        with self._guard('finish a game'):
            updated = self.session.execute(stmt).scalar_one_or_none()
            self.session.commit()
            return updated is not None

    def save_level_data(self, team, level, data):
        with self._guard('save level data'):
            setattr(team, Team.level_column(level), dump_payload(data))
            self.session.add(team)
            self.session.commit()

    def add_message(self, team_id, player_name, text):
        with self._guard('store a message'):
            message = Message(team_id=team_id, player_name=player_name, message=text)
            self.session.add(message)
            self.session.commit()
            return message
