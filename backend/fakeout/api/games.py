import uuid

from flask import Blueprint, current_app, jsonify, request

from fakeout import get_engine
from fakeout.errors import GameError, InvalidRequest

games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


def _durations():
    cfg = current_app.config
    return {
        'answer': int(float(cfg.get('ANSWER_DURATION_SEC', 45)) * 1000),
        'deliberation': int(float(cfg.get('DELIBERATION_DURATION_SEC', 30)) * 1000),
        'results': int(float(cfg.get('RESULTS_PAUSE_SEC', 6)) * 1000),
    }


@games.route('/create', methods=['POST'])
def create_game():
    session = get_engine().store.create()
    return jsonify({
        'message': 'New game created!',
        'game_code': session.code,
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game_code = data.get('game_code')
    name = data.get('name')
    if not all([game_code, name]):
        raise InvalidRequest('Game code and player name are required')

    player_id = data.get('player_id') or uuid.uuid4().hex
    session = get_engine().store.require(game_code)
    player = get_engine().store.join(session.code, player_id, name, avatar=data.get('avatar'))
    return jsonify(player.to_dict(session.host_id)), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    session = get_engine().store.require(game_code)
    payload = session.to_dict()
    payload['durations'] = _durations()
    payload['total_questions'] = get_engine().total_questions
    return jsonify(payload)


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        raise InvalidRequest('player_id is required')
    session = get_engine().start(game_code, player_id)
    current_app.logger.info(f"[start] game={session.code} by={player_id}")
    return jsonify(session.to_dict())
