import os
import sys
import pytest

# Ensure the backend root (containing the `battle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from battle import create_app, db, socketio
from battle.repository import GameRepository
from battle.services.games import GameCoordinator, RoomBroadcaster, SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    GAME_CODE_LENGTH = 6
    CODE_MAX_ATTEMPTS = 10
    INITIAL_TEAM_SCORE = 100
    MESSAGE_HISTORY_LIMIT = 50


class Recorder:
    """Transport that records deliveries instead of emitting them."""

    def __init__(self):
        self.sent = []

    def __call__(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def events_for(self, sid, event=None):
        return [p for s, e, p in self.sent if s == sid and (event is None or e == event)]

    def names_for(self, sid):
        return [e for s, e, _ in self.sent if s == sid]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import battle.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def coordinator(flask_app, recorder):
    return GameCoordinator(
        repository=GameRepository(db),
        registry=SessionRegistry(),
        broadcaster=RoomBroadcaster(transport=recorder),
    )
