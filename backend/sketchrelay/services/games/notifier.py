"""In-process "game changed" channel.

Listeners only receive the game id and must re-fetch whatever they need.
Nothing is queued or replayed: the database stays the source of truth and
a reconnecting client always gets a full state push on connect.
"""

import logging
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

GameChangeHandler = Callable[[str], None]


class ChangeNotifier:
    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[int, tuple] = {}
        self._next_token = 0

    def subscribe(self, handler: GameChangeHandler, game_id: Optional[str] = None) -> Callable[[], None]:
        """Register ``handler``; returns a callable that removes it again.

        With ``game_id`` the handler only fires for that game.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._handlers[token] = (handler, game_id)

        def unsubscribe():
            with self._lock:
                self._handlers.pop(token, None)

        return unsubscribe

    def notify(self, game_id: str) -> None:
        # Snapshot, so handlers added during dispatch wait for the next event
        with self._lock:
            handlers = list(self._handlers.items())
        for token, (handler, only_game) in handlers:
            if only_game is not None and only_game != game_id:
                continue
            with self._lock:
                # Removed during dispatch
                if token not in self._handlers:
                    continue
            try:
                handler(game_id)
            except Exception:
                logger.exception('[notify] handler failed for game=%s', game_id)

    def __len__(self):
        with self._lock:
            return len(self._handlers)
