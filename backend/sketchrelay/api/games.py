from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from sketchrelay.errors import GameError
from sketchrelay.services.games import state as game_state

games = Blueprint('games', __name__)


def _payload():
    return request.get_json(silent=True) or request.form


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'on', 'yes')
    return bool(value)


def _wants_json() -> bool:
    # Browsers posting forms get plain text; scripted clients ask for JSON
    return (
        request.args.get('json') == '1'
        or request.is_json
        or request.accept_mimetypes.best == 'application/json'
    )


@games.errorhandler(GameError)
def handle_game_error(err: GameError):
    if _wants_json():
        return jsonify(err.to_dict()), err.status_code
    return err.message, err.status_code, {'Content-Type': 'text/plain; charset=utf-8'}


@games.route('/create', methods=['POST'])
@login_required
def create_game():
    data = _payload()
    game_id = game_state.create_game(
        current_user,
        display_name=data.get('name'),
        hide_avatar=_flag(data.get('hide_avatar')),
    )
    return jsonify({'game_id': game_id}), 201


@games.route('/mine', methods=['GET'])
@login_required
def my_games():
    return jsonify(game_state.list_user_games(current_user.id))


@games.route('/<string:game_id>/state', methods=['GET'])
def get_game_state(game_id):
    viewer = current_user.id if current_user.is_authenticated else None
    return jsonify(game_state.get_client_state(game_id, viewer))


@games.route('/<string:game_id>/join', methods=['POST'])
@login_required
def join_game(game_id):
    data = _payload()
    game_state.join_game(
        game_id,
        current_user,
        display_name=data.get('name'),
        hide_avatar=_flag(data.get('hide_avatar')),
    )
    return jsonify({'ok': True})


@games.route('/<string:game_id>/leave', methods=['POST'])
@login_required
def leave_game(game_id):
    # Admins may remove someone else by passing their user_id
    target = _payload().get('user_id') or current_user.id
    game_state.leave_game(game_id, target, current_user.id)
    return jsonify({'ok': True})


@games.route('/<string:game_id>/cancel', methods=['POST'])
@login_required
def cancel_game(game_id):
    game_state.cancel_game(game_id, current_user.id)
    return jsonify({'ok': True})


@games.route('/<string:game_id>/start', methods=['POST'])
@login_required
def start_game(game_id):
    game_state.start_game(game_id, current_user.id)
    return jsonify({'ok': True})


@games.route('/<string:game_id>/play', methods=['POST'])
@login_required
def play_turn(game_id):
    data = _payload()
    game_state.play_turn(game_id, data.get('thread'), current_user.id, data.get('data'))
    return jsonify({'ok': True})
