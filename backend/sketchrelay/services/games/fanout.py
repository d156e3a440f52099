import logging
import threading
from typing import Callable, Dict, Optional, Set, Tuple

from sketchrelay.services.games.locks import GameLocks
from sketchrelay.services.games.visibility import cancelled_state, project_state

logger = logging.getLogger(__name__)


class GameFanout:
    """Tracks which connections watch which game and pushes each its own view.

    Connections are opaque subscriber ids (Socket.IO sids in production);
    ``push(sid, payload)`` delivers to one of them and ``load_snapshot``
    fetches a fresh GameSnapshot (None once the game is gone).
    """

    def __init__(self, push: Callable[[str, dict], None], load_snapshot: Callable[[str], object]):
        self._push = push
        self._load_snapshot = load_snapshot
        self._lock = threading.Lock()
        self._game_locks = GameLocks()
        self._connections: Dict[str, Tuple[str, Optional[str]]] = {}
        self._subscribers: Dict[str, Set[str]] = {}
        self._unsubscribe = None

    def attach(self, notifier, dispatch: Callable[[str], None] = None) -> None:
        """Listen for game changes; ``dispatch`` defaults to handling them inline."""
        self._unsubscribe = notifier.subscribe(dispatch or self.game_changed)

    def close(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            self._connections.clear()
            self._subscribers.clear()

    def subscribers(self, game_id: str) -> Set[str]:
        with self._lock:
            return set(self._subscribers.get(game_id, ()))

    def viewer(self, sid: str) -> Optional[Tuple[str, Optional[str]]]:
        with self._lock:
            return self._connections.get(sid)

    def _register(self, sid: str, game_id: str, user_id: Optional[str]) -> None:
        with self._lock:
            self._discard(sid)
            self._connections[sid] = (game_id, user_id)
            self._subscribers.setdefault(game_id, set()).add(sid)

    def _discard(self, sid: str) -> None:
        previous = self._connections.pop(sid, None)
        if previous is None:
            return
        sids = self._subscribers.get(previous[0])
        if sids is not None:
            sids.discard(sid)
            if not sids:
                del self._subscribers[previous[0]]

    def _deliver(self, sid: str, payload: dict) -> bool:
        try:
            self._push(sid, payload)
            return True
        except Exception:
            logger.exception('[fanout] push to sid=%s failed', sid)
            return False

    def connection_opened(self, sid: str, game_id: str, user_id: Optional[str] = None) -> dict:
        """Subscribe ``sid`` to ``game_id`` and push its current view once.

        The sid is registered before the snapshot is read, so a change that
        lands in between is pushed to it afterwards rather than lost.
        """
        with self._game_locks.hold(game_id):
            self._register(sid, game_id, user_id)
            snapshot = self._load_snapshot(game_id)
            if snapshot is None:
                with self._lock:
                    self._discard(sid)
                payload = cancelled_state()
            else:
                payload = project_state(snapshot, user_id)
            self._deliver(sid, payload)
        return payload

    def connection_closed(self, sid: str) -> None:
        with self._lock:
            self._discard(sid)

    def game_changed(self, game_id: str) -> None:
        # Load and push run one at a time per game, so the last push a
        # subscriber gets is from the newest read
        with self._game_locks.hold(game_id):
            with self._lock:
                targets = [(sid, self._connections[sid][1]) for sid in self._subscribers.get(game_id, ())]
            if not targets:
                return

            snapshot = self._load_snapshot(game_id)
            if snapshot is None:
                payload = cancelled_state()
                for sid, _ in targets:
                    self._deliver(sid, payload)
                with self._lock:
                    for sid, _ in targets:
                        self._discard(sid)
                logger.info('[fanout] game=%s gone, dropped %d subscribers', game_id, len(targets))
                return

            delivered = 0
            for sid, user_id in targets:
                try:
                    payload = project_state(snapshot, user_id)
                except Exception:
                    logger.exception('[fanout] projection for sid=%s failed', sid)
                    continue
                delivered += self._deliver(sid, payload)
        logger.debug('[fanout] game=%s pushed %d/%d', game_id, delivered, len(targets))
