from datetime import datetime, timezone
import json

from battle import db
from battle.errors import CorruptPayload

LEVELS = (1, 2, 3)


def utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


def dump_payload(value):
    """Serialize an opaque settings/level-data value for storage."""
    return json.dumps(value)


def load_payload(raw, what='payload'):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CorruptPayload(f'Stored {what} could not be decoded') from exc


class Game(db.Model):
    __tablename__ = 'games'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, playing, finished
    settings = db.Column(db.Text, nullable=True)  # JSON-encoded, opaque
    current_level = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    teams = db.relationship('Team', back_populates='game', order_by='Team.id')
    players = db.relationship('Player', back_populates='game', order_by='Player.id')

    @property
    def settings_data(self):
        return load_payload(self.settings, 'settings')

    @property
    def active_players(self):
        return [p for p in self.players if p.is_active]

    def to_dict(self, include_children=True):
        data = {
            'id': self.id,
            'code': self.code,
            'status': self.status,
            'settings': self.settings_data,
            'current_level': self.current_level,
            'created_at': _isoformat(self.created_at),
        }
        if include_children:
            data['teams'] = [t.to_dict() for t in self.teams]
            data['players'] = [p.to_dict() for p in self.active_players]
        return data


class Team(db.Model):
    __tablename__ = 'teams'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('games.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=100)
    level1_data = db.Column(db.Text, nullable=True)
    level2_data = db.Column(db.Text, nullable=True)
    level3_data = db.Column(db.Text, nullable=True)
    game = db.relationship('Game', back_populates='teams')
    players = db.relationship('Player', back_populates='team')
    messages = db.relationship('Message', back_populates='team', lazy='dynamic')

    @staticmethod
    def level_column(level):
        return f'level{level}_data'

    def level_data(self, level):
        return load_payload(getattr(self, self.level_column(level)), f'level {level} data')

    def to_dict(self):
        data = {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
            'score': self.score,
        }
        for level in LEVELS:
            data[self.level_column(level)] = self.level_data(level)
        return data


class Player(db.Model):
    __tablename__ = 'players'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('games.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True)
    name = db.Column(db.String(64), nullable=False)
    role = db.Column(db.String(32), nullable=True)
    telegram_id = db.Column(db.String(64), nullable=True)
    # Live connection handle; cleared when the connection goes away
    socket_id = db.Column(db.String(64), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    left_at = db.Column(db.DateTime(timezone=True), nullable=True)
    game = db.relationship('Game', back_populates='players')
    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'team_id': self.team_id,
            'name': self.name,
            'role': self.role,
            'telegram_id': self.telegram_id,
            'is_active': self.is_active,
        }


class Message(db.Model):
    __tablename__ = 'messages'
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False, index=True)
    player_name = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=utcnow)
    team = db.relationship('Team', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'player_name': self.player_name,
            'message': self.message,
            'timestamp': _isoformat(self.timestamp),
        }
