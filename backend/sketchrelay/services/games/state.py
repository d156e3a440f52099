"""Game state machine.

Every mutating operation holds the game's lock for its whole
read-validate-write sequence and commits once, so a failure leaves nothing
half applied. Listeners are told about the change only after the commit.
"""

import random
from contextlib import contextmanager
from typing import List

from flask import current_app

from sketchrelay import db
from sketchrelay.errors import Forbidden, NotFound, QuotaExceeded
from sketchrelay.models import Game, GameState, Player, Thread, Turn, TurnType, utcnow
from sketchrelay.services.games import repository
from sketchrelay.services.games.names import generate_game_id
from sketchrelay.services.games.sanitize import encode_payload, sanitize_name, sanitize_turn
from sketchrelay.services.games.visibility import awaited_threads, project_state

_default_rng = random.SystemRandom()


@contextmanager
def _locked_transaction(game_id: str):
    locks = current_app.extensions['game_locks']
    with locks.hold(game_id):
        try:
            yield
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def _game_changed(game_id: str) -> None:
    current_app.extensions['game_notifier'].notify(game_id)


def _require_game(game_id: str) -> Game:
    game = repository.get_game(game_id)
    if not game:
        raise NotFound('Game not found')
    return game


def _require_admin(game: Game, acting_user_id, message: str) -> None:
    admin = game.admin
    if admin is None or admin.user_id != acting_user_id:
        raise Forbidden(message)


def _display_name(user, display_name) -> str:
    max_length = int(current_app.config.get('MAX_NAME_LENGTH', 40))
    if display_name is None:
        display_name = getattr(user, 'name', None)
    return sanitize_name(display_name, max_length)


def _avatar(user, hide_avatar: bool):
    return None if hide_avatar else getattr(user, 'picture', None)


def _advance_thread(thread: Thread, players: List[Player], turn_type: TurnType, data) -> None:
    """Record a turn for whoever the thread awaits, then move the thread on.

    If the next awaited player has already left, a Skip is recorded for them
    straight away, so a thread never waits on someone who is gone.
    """
    player_count = len(players)
    by_order = {p.order: p for p in players}
    while True:
        player = by_order[(thread.turn + thread.turn_offset) % player_count]
        db.session.add(Turn(thread_id=thread.id, player_id=player.id, type=int(turn_type), data=data))
        current_app.logger.info(
            f"[turn] game={thread.game_id} thread={thread.id} turn={thread.turn} "
            f"player={player.id} type={turn_type.name}"
        )
        if thread.turn + 1 == player_count:
            thread.complete = True
            return
        thread.turn += 1
        thread.turn_updated_at = utcnow()
        if not by_order[(thread.turn + thread.turn_offset) % player_count].left_game:
            return
        turn_type, data = TurnType.SKIP, None


def _complete_if_done(game: Game, threads: List[Thread]) -> bool:
    if not threads or not all(t.complete for t in threads):
        return False
    game.state = GameState.COMPLETE
    game.completed_at = utcnow()
    current_app.logger.info(f"[complete] game={game.id} threads={len(threads)}")
    return True


def create_game(user, display_name=None, hide_avatar=False, rng=None) -> str:
    """Create an open game with ``user`` as its admin and return the new id."""
    name = _display_name(user, display_name)
    max_open = int(current_app.config.get('MAX_OPEN_GAMES_PER_USER', 10))
    if repository.count_open_games_owned_by(user.id) >= max_open:
        raise QuotaExceeded(f'You can only have {max_open} unfinished games at once')

    game_id = generate_game_id(repository.game_exists, rng or _default_rng)
    with _locked_transaction(game_id):
        game = Game(id=game_id, state=GameState.OPEN)
        db.session.add(game)
        db.session.add(Player(
            game=game,
            user_id=user.id,
            name=name,
            avatar=_avatar(user, hide_avatar),
            is_admin=True,
        ))
    current_app.logger.info(f"[create] game={game_id} admin={user.id}")
    _game_changed(game_id)
    return game_id


def join_game(game_id: str, user, display_name=None, hide_avatar=False) -> None:
    with _locked_transaction(game_id):
        game = _require_game(game_id)
        if game.state != GameState.OPEN:
            raise Forbidden('Game has already started')
        if repository.find_player(game, user.id):
            return
        db.session.add(Player(
            game_id=game.id,
            user_id=user.id,
            name=_display_name(user, display_name),
            avatar=_avatar(user, hide_avatar),
            is_admin=False,
        ))
    current_app.logger.info(f"[join] game={game_id} user={user.id}")
    _game_changed(game_id)


def leave_game(game_id: str, target_user_id, acting_user_id) -> None:
    """Remove ``target_user_id`` from the game, by themselves or by the admin.

    Before the game starts the seat is deleted. Mid-game the player is
    flagged as left and every thread waiting on them gets a Skip.
    """
    with _locked_transaction(game_id):
        game = _require_game(game_id)
        player = repository.find_player(game, target_user_id)
        if not player:
            return
        if player.is_admin:
            raise Forbidden('Admin cannot leave a game')
        if game.state == GameState.COMPLETE:
            raise Forbidden('Cannot leave a completed game')
        if acting_user_id != target_user_id:
            _require_admin(game, acting_user_id, 'Only the admin can remove other players')

        if game.state == GameState.OPEN:
            db.session.delete(player)
        else:
            if player.left_game:
                return
            player.left_game = True
            players = repository.get_players(game)
            threads = repository.get_threads(game)
            skipped = 0
            for thread in threads:
                if thread.awaited_order(len(players)) == player.order:
                    _advance_thread(thread, players, TurnType.SKIP, None)
                    skipped += 1
            current_app.logger.info(f"[skip] game={game.id} player={player.id} threads={skipped}")
            _complete_if_done(game, threads)
    current_app.logger.info(f"[leave] game={game_id} user={target_user_id} by={acting_user_id}")
    _game_changed(game_id)


def cancel_game(game_id: str, acting_user_id) -> None:
    with _locked_transaction(game_id):
        game = _require_game(game_id)
        _require_admin(game, acting_user_id, 'Only the admin can cancel a game')
        if game.state == GameState.COMPLETE:
            raise Forbidden('Game already complete')
        repository.delete_game(game)
    current_app.logger.info(f"[cancel] game={game_id}")
    _game_changed(game_id)


def start_game(game_id: str, acting_user_id, rng=None) -> None:
    rng = rng or _default_rng
    with _locked_transaction(game_id):
        game = _require_game(game_id)
        _require_admin(game, acting_user_id, 'Only the admin can start the game')
        if game.state != GameState.OPEN:
            raise Forbidden('Game has already started')
        players = repository.get_players(game)
        min_players = int(current_app.config.get('MIN_PLAYERS', 4))
        if len(players) < min_players:
            raise Forbidden(f'At least {min_players} players are required to start')

        remaining = list(players)
        ordered = []
        while remaining:
            ordered.append(remaining.pop(rng.randrange(len(remaining))))
        for index, player in enumerate(ordered):
            player.order = index
            db.session.add(Thread(game_id=game.id, turn_offset=index, turn=0, complete=False))
        game.state = GameState.PLAYING
    current_app.logger.info(f"[start] game={game_id} players={len(players)}")
    _game_changed(game_id)


def play_turn(game_id: str, thread_id, acting_user_id, raw_turn_data) -> None:
    with _locked_transaction(game_id):
        game = _require_game(game_id)
        player = repository.find_player(game, acting_user_id)
        if not player:
            raise NotFound('You are not a player in this game')
        thread = repository.get_thread(game, thread_id)
        if not thread:
            raise NotFound('Thread not found')
        if game.state != GameState.PLAYING:
            raise Forbidden('Game is not in play')
        if player.left_game:
            raise Forbidden('You have left this game')
        if thread.complete:
            raise Forbidden('Thread is already complete')
        players = repository.get_players(game)
        if thread.awaited_order(len(players)) != player.order:
            raise Forbidden('Not your turn on this thread')

        previous = repository.last_non_skip_turn(thread.id)
        if previous is not None and previous.type == TurnType.DESCRIBE:
            turn_type = TurnType.DRAW
        else:
            turn_type = TurnType.DESCRIBE
        payload = sanitize_turn(turn_type, raw_turn_data, current_app.config)

        _advance_thread(thread, players, turn_type, encode_payload(payload))
        _complete_if_done(game, repository.get_threads(game))
    _game_changed(game_id)


def get_client_state(game_id: str, viewer_user_id=None) -> dict:
    snapshot = repository.load_snapshot(game_id)
    if snapshot is None:
        raise NotFound('Game not found')
    return project_state(snapshot, viewer_user_id)


def list_user_games(user_id) -> list:
    """The user's games, flagging the ones with a thread waiting on them."""
    result = []
    for game in repository.get_user_games(user_id):
        snapshot = repository.load_snapshot(game.id, with_turns=False)
        player = snapshot.player_by_user(user_id)
        result.append({
            'game': game.to_dict(),
            'isAdmin': bool(player and player.is_admin),
            'waitingOnPlayer': bool(awaited_threads(snapshot, player)),
        })
    return result
