import dataclasses
import threading
from typing import Optional

from .models import Game


class CurrentGame:
    """
    The game the cabinet last launched. Read from request threads and from the
    event loop, so every access goes through one lock.
    """

    def __init__(self, game: Optional[Game] = None):
        self._lock = threading.Lock()
        self._game = game if game is not None else Game.empty()

    def get(self) -> Game:
        with self._lock:
            return dataclasses.replace(self._game)

    def set(self, game: Game) -> None:
        with self._lock:
            self._game = dataclasses.replace(game)

    def reset(self) -> None:
        self.set(Game.empty())
