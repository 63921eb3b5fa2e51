from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Awaitable, Dict, Optional, TypeVar

from .catalog import CatalogClient
from .collaborators import CardReader, Persistence, read_tag, read_user
from .installer import Installer
from .launch import LaunchSupervisor
from .models import Game, Player
from .network import Transport
from .state import CurrentGame

log = logging.getLogger(__name__)

T = TypeVar("T")


class Onboard:
    """
    Process-wide owner of the shared pieces: one event loop on a daemon
    thread, the pooled transport, and the current-game slot. Created once at
    startup and closed at exit.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        base_url: Optional[str] = None,
        games_root: Optional[Path] = None,
        card_reader: Optional[CardReader] = None,
        persistence: Optional[Persistence] = None,
        strict_install: bool = True,
        cooldown: Optional[float] = None,
    ):
        self.transport = transport or Transport()
        self.current = CurrentGame()
        self.catalog = CatalogClient(self.transport, base_url=base_url, games_root=games_root)
        self.installer = Installer(self.catalog, games_root=games_root, strict=strict_install)
        self.supervisor = LaunchSupervisor(self.installer, self.current,
                                           persistence=persistence, cooldown=cooldown)
        self.card_reader = card_reader
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    # ──────────────────────────────────────────────────────────────────────
    # Event loop
    # ──────────────────────────────────────────────────────────────────────

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._start_lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                self._thread = threading.Thread(target=loop.run_forever, name="onboard-loop", daemon=True)
                self._thread.start()
                self._loop = loop
            return self._loop

    def call(self, coro: Awaitable[T]) -> T:
        """Run `coro` on the shared loop and block the calling thread for its result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._ensure_loop())
        return future.result()

    def close(self) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            self.call(self.transport.aclose())
        finally:
            loop.call_soon_threadsafe(loop.stop)
            if self._thread is not None:
                self._thread.join(timeout=5)
            loop.close()
            self._loop = None
            self._thread = None

    # ──────────────────────────────────────────────────────────────────────
    # Session collaborators
    # ──────────────────────────────────────────────────────────────────────

    def current_game(self) -> Game:
        return self.current.get()

    async def nfc_tags(self, player: Player) -> Optional[str]:
        return await read_tag(self.card_reader, player)

    async def nfc_user(self, association_id: str) -> Dict[str, Any]:
        return await read_user(self.card_reader, association_id)
