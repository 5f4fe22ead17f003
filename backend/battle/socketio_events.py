from flask import current_app, request
from flask_socketio import emit

from battle import socketio, NAMESPACE
from battle.errors import GameError


def _coordinator():
    return current_app.extensions['battle']


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _emit_error(exc: GameError) -> None:
    current_app.logger.info(f"[socket-error] sid={_get_sid()} {type(exc).__name__}: {exc.message}")
    emit('error', {'message': exc.message})


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    _coordinator().leave(sid)


def handle_join_game(data):
    data = data or {}
    try:
        _coordinator().join_game(
            data.get('code'),
            data.get('playerName'),
            data.get('teamId'),
            data.get('role'),
            _get_sid(),
            telegram_id=data.get('telegramId'),
        )
    except GameError as exc:
        _emit_error(exc)


def handle_send_message(data):
    data = data or {}
    try:
        _coordinator().send_message(data.get('teamId'), data.get('playerName'), data.get('message'))
    except GameError as exc:
        _emit_error(exc)


def handle_update_score(data):
    data = data or {}
    try:
        _coordinator().update_score(data.get('teamId'), data.get('points'), code=data.get('code'))
    except GameError as exc:
        _emit_error(exc)


def handle_ping(data):
    emit('pong', data or {})


def handle_unexpected_error(exc):
    current_app.logger.exception(f"[socket-error] sid={_get_sid()} unhandled {type(exc).__name__}")
    emit('error', {'message': 'Internal server error'})


def register_socketio_handlers() -> None:
    """Bind the Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join-game', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('send-message', handle_send_message, namespace=NAMESPACE)
    socketio.on_event('update-score', handle_update_score, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
    socketio.on_error(NAMESPACE)(handle_unexpected_error)
