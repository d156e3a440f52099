from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sketchrelay import db
from sketchrelay.models import Game, GameState, Player, Thread, Turn, TurnType


@dataclass
class GameSnapshot:
    """A game with its players, threads and (when relevant) turns, read at one point in time."""
    game: Game
    players: List[Player]
    threads: List[Thread]
    turns: Dict[int, List[Turn]] = field(default_factory=dict)

    @property
    def player_count(self) -> int:
        return len(self.players)

    def player_by_user(self, user_id) -> Optional[Player]:
        if user_id is None:
            return None
        return next((p for p in self.players if p.user_id == user_id), None)


def get_game(game_id: str) -> Optional[Game]:
    if not game_id:
        return None
    return Game.query.filter_by(id=game_id).first()


def game_exists(game_id: str) -> bool:
    return db.session.query(Game.query.filter_by(id=game_id).exists()).scalar()


def get_players(game: Game) -> List[Player]:
    return (
        Player.query.filter_by(game_id=game.id)
        .order_by(Player.order, Player.id)
        .all()
    )


def get_threads(game: Game) -> List[Thread]:
    return Thread.query.filter_by(game_id=game.id).order_by(Thread.turn_offset).all()


def get_thread(game: Game, thread_id) -> Optional[Thread]:
    try:
        thread_id = int(thread_id)
    except (TypeError, ValueError):
        return None
    return Thread.query.filter_by(id=thread_id, game_id=game.id).first()


def find_player(game: Game, user_id) -> Optional[Player]:
    if user_id is None:
        return None
    return Player.query.filter_by(game_id=game.id, user_id=user_id).first()


def get_turns(thread_ids: Iterable[int]) -> Dict[int, List[Turn]]:
    """Turns for the given threads, oldest first, keyed by thread id."""
    ids = list(thread_ids)
    result: Dict[int, List[Turn]] = {tid: [] for tid in ids}
    if not ids:
        return result
    for turn in Turn.query.filter(Turn.thread_id.in_(ids)).order_by(Turn.id).all():
        result[turn.thread_id].append(turn)
    return result


def last_non_skip_turn(thread_id: int) -> Optional[Turn]:
    return (
        Turn.query.filter(Turn.thread_id == thread_id, Turn.type != TurnType.SKIP)
        .order_by(Turn.id.desc())
        .first()
    )


def count_open_games_owned_by(user_id) -> int:
    return (
        Player.query.join(Game, Player.game_id == Game.id)
        .filter(
            Player.user_id == user_id,
            Player.is_admin.is_(True),
            Game.state != GameState.COMPLETE,
        )
        .count()
    )


def get_user_games(user_id) -> List[Game]:
    """Games the user has a seat in (including ones they left), newest first."""
    return (
        Game.query.join(Player, Player.game_id == Game.id)
        .filter(Player.user_id == user_id)
        .order_by(Game.created_at.desc(), Game.id)
        .all()
    )


def delete_game(game: Game) -> None:
    # Players, threads and turns go with it (ORM cascade)
    db.session.delete(game)


def load_snapshot(game_id: str, with_turns: bool = True) -> Optional[GameSnapshot]:
    game = get_game(game_id)
    if not game:
        return None
    players = get_players(game)
    threads = get_threads(game)
    turns = {}
    if with_turns and game.state != GameState.OPEN:
        turns = get_turns(t.id for t in threads)
    return GameSnapshot(game=game, players=players, threads=threads, turns=turns)
