import threading
from contextlib import contextmanager
from typing import Dict


class GameLocks:
    """One lock per game id, so read-modify-write on a game never interleaves.

    Locks for different games are independent. Entries are dropped once no
    caller holds or waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    @contextmanager
    def hold(self, game_id: str):
        with self._guard:
            lock = self._locks.setdefault(game_id, threading.Lock())
            self._users[game_id] = self._users.get(game_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[game_id] -= 1
                if not self._users[game_id]:
                    del self._users[game_id]
                    del self._locks[game_id]

    def __len__(self):
        with self._guard:
            return len(self._locks)
