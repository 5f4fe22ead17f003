import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

NAMESPACE = '/'


def _emit_to_connection(sid, event, payload):
    socketio.emit(event, payload, to=sid, namespace=NAMESPACE)


def _ensure_sqlite_dir(uri):
    if uri.startswith('sqlite:///') and uri != 'sqlite:///:memory:':
        directory = os.path.dirname(uri[len('sqlite:///'):])
        if directory:
            os.makedirs(directory, exist_ok=True)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    _ensure_sqlite_dir(flask_app.config['SQLALCHEMY_DATABASE_URI'])
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, supports_credentials=origins != '*', origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # One coordinator per app; it owns the registry and the room tables
    from battle.repository import GameRepository
    from battle.services.games import GameCoordinator, RoomBroadcaster, SessionRegistry
    flask_app.extensions['battle'] = GameCoordinator(
        repository=GameRepository(db),
        registry=SessionRegistry(),
        broadcaster=RoomBroadcaster(transport=_emit_to_connection),
        code_length=flask_app.config.get('GAME_CODE_LENGTH', 6),
        max_code_attempts=flask_app.config.get('CODE_MAX_ATTEMPTS', 10),
        initial_score=flask_app.config.get('INITIAL_TEAM_SCORE', 100),
    )

    from battle.main import main
    flask_app.register_blueprint(main)

    from battle.api.games import games
    # Mount game routes under /api/game to match the frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/game')

    _register_error_handlers(flask_app)

    from battle.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database schema."""
        with flask_app.app_context():
            import battle.models  # noqa: F401
            db.drop_all()
            db.create_all()
            flask_app.extensions['battle'].registry.clear()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def _register_error_handlers(flask_app):
    from battle.errors import GameError

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        flask_app.logger.info(f"[error] {type(exc).__name__}: {exc.message}")
        return jsonify({'success': False, 'error': exc.message}), exc.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'success': False, 'error': exc.description}), exc.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        flask_app.logger.exception(f"[error] unhandled {type(exc).__name__}")
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Internal server error'}), 500
