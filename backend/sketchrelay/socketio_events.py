from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit

from sketchrelay import socketio
from sketchrelay.services.games.fanout import GameFanout
from sketchrelay.services.games.repository import load_snapshot

NAMESPACE = '/ws'


def _fanout() -> GameFanout:
    return current_app.extensions['game_fanout']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _viewer_id():
    if current_user and current_user.is_authenticated:
        return current_user.id
    return None


def _push_state(sid: str, payload: dict) -> None:
    socketio.emit('state', payload, to=sid, namespace=NAMESPACE)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})
    # The game can be bound at handshake time (?game_id=...) or later via join_game
    game_id = request.args.get('game_id') or (auth or {}).get('game_id')
    if game_id:
        _fanout().connection_opened(_get_sid(), game_id, _viewer_id())


def handle_disconnect(reason=None):
    _fanout().connection_closed(_get_sid())


def handle_join_game(data):
    game_id = (data or {}).get('game_id')
    if not game_id:
        emit('error', {'message': 'game_id is required'})
        return
    emit('joined', {'game_id': game_id})
    _fanout().connection_opened(_get_sid(), game_id, _viewer_id())


def handle_leave_game(data=None):
    viewer = _fanout().viewer(_get_sid())
    _fanout().connection_closed(_get_sid())
    emit('left', {'game_id': viewer[0] if viewer else None})


def handle_ping(data):
    emit('pong', data or {})


def _run_fanout(app, fanout: GameFanout, game_id: str) -> None:
    with app.app_context():
        try:
            fanout.game_changed(game_id)
        except Exception:
            app.logger.exception(f"[fanout] game={game_id} dispatch failed")


def register_socketio_handlers(flask_app) -> None:
    """Build the app's subscriber registry and register /ws event handlers.

    Change events are fanned out on a Socket.IO background task so the
    request that caused them is not held up. In TESTING they run inline to
    keep test expectations deterministic.
    """
    fanout = GameFanout(push=_push_state, load_snapshot=load_snapshot)
    notifier = flask_app.extensions['game_notifier']
    if flask_app.config.get('TESTING'):
        fanout.attach(notifier)
    else:
        fanout.attach(
            notifier,
            lambda game_id: socketio.start_background_task(_run_fanout, flask_app, fanout, game_id),
        )
    flask_app.extensions['game_fanout'] = fanout

    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_game', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('leave_game', handle_leave_game, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
