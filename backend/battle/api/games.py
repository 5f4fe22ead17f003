from flask import Blueprint, jsonify, request, current_app

games = Blueprint('games', __name__)


def _coordinator():
    return current_app.extensions['battle']


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    created = _coordinator().create_game(data.get('settings'))
    return jsonify({'success': True, **created}), 201


@games.route('/<string:game_code>', methods=['GET'])
def get_game(game_code):
    game = _coordinator().get_game(game_code)
    current_app.logger.debug(f"[state] game={game['code']} teams={len(game['teams'])} players={len(game['players'])}")
    return jsonify({'success': True, 'game': game})


@games.route('/<string:game_code>/score', methods=['POST'])
def update_score(game_code):
    data = request.get_json(silent=True) or {}
    new_score = _coordinator().update_score(data.get('teamId'), data.get('points'), code=game_code)
    return jsonify({'success': True, 'newScore': new_score})


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    _coordinator().start_game(game_code)
    return jsonify({'success': True})


@games.route('/<string:game_code>/next-level', methods=['POST'])
def next_level(game_code):
    level = _coordinator().advance_level(game_code)
    return jsonify({'success': True, 'level': level})


@games.route('/<string:game_code>/finish', methods=['POST'])
def finish_game(game_code):
    _coordinator().finish_game(game_code)
    return jsonify({'success': True})


@games.route('/<string:game_code>/level-data', methods=['POST'])
def save_level_data(game_code):
    data = request.get_json(silent=True) or {}
    _coordinator().save_level_data(data.get('teamId'), data.get('level'), data.get('data'), code=game_code)
    return jsonify({'success': True})


@games.route('/<string:game_code>/teams/<int:team_id>/messages', methods=['GET'])
def team_messages(game_code, team_id):
    limit = request.args.get('limit', type=int) or current_app.config.get('MESSAGE_HISTORY_LIMIT', 50)
    messages = _coordinator().team_messages(game_code, team_id, limit=max(1, limit))
    return jsonify({'success': True, 'messages': messages})
