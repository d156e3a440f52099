"""Per-viewer projection of game state.

Everyone sees the roster and thread counters. Turn content stays hidden
while a game is in play, except for the single turn the viewer has to
respond to next. Once the game is complete everything is revealed.

These functions read only from the snapshot they are given, so every
subscriber can be served a fresh projection of the same change.
"""

from datetime import datetime
from typing import List, Optional

from sketchrelay.models import GameState, Player, Thread, TurnType
from sketchrelay.services.games.repository import GameSnapshot
from sketchrelay.services.games.sanitize import decode_payload, payload_to_wire


def awaited_threads(snapshot: GameSnapshot, player: Optional[Player]) -> List[Thread]:
    """Incomplete threads currently waiting on ``player``."""
    if player is None or player.left_game or player.order is None:
        return []
    if snapshot.game.state != GameState.PLAYING or not snapshot.player_count:
        return []
    return [
        t for t in snapshot.threads
        if t.awaited_order(snapshot.player_count) == player.order
    ]


def _staleness(thread: Thread):
    # Never advanced sorts first
    updated = thread.turn_updated_at
    return (updated is not None, updated or datetime.min, thread.turn_offset)


def in_play_thread(snapshot: GameSnapshot, player: Optional[Player]) -> Optional[Thread]:
    """The thread the player should address first: the stalest one waiting on them."""
    waiting = awaited_threads(snapshot, player)
    if not waiting:
        return None
    return min(waiting, key=_staleness)


def last_non_skip(turns):
    for turn in reversed(turns or []):
        if turn.type != TurnType.SKIP:
            return turn
    return None


def turn_view(turn) -> dict:
    data = turn.to_dict()
    data['data'] = payload_to_wire(decode_payload(turn.type, turn.data))
    return data


def project_state(snapshot: GameSnapshot, viewer_user_id=None) -> dict:
    game = snapshot.game
    reveal_all = game.state == GameState.COMPLETE

    threads = []
    for thread in snapshot.threads:
        data = thread.to_dict()
        if reveal_all:
            data['turns'] = [turn_view(t) for t in snapshot.turns.get(thread.id, [])]
        threads.append(data)

    game_data = game.to_dict()
    game_data['players'] = [p.to_dict() for p in snapshot.players]
    game_data['threads'] = threads
    state = {'game': game_data}

    if reveal_all:
        return state

    thread = in_play_thread(snapshot, snapshot.player_by_user(viewer_user_id))
    if thread is not None:
        state['inPlayThread'] = thread.to_dict()
        last_turn = last_non_skip(snapshot.turns.get(thread.id))
        if last_turn is not None:
            state['lastTurnInThread'] = turn_view(last_turn)
    return state


def cancelled_state() -> dict:
    return {'cancelled': True}
