from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from . import settings
from .errors import TransportError
from .models import BatchResult, Diagnostic, Game, MinimalGame, Tag, User
from .network import Transport
from .scanning import scan_installed

log = logging.getLogger(__name__)

T = TypeVar("T")

# ──────────────────────────────────────────────────────────────────────────────
# Catalog routes, relative to the service base URL
# ──────────────────────────────────────────────────────────────────────────────

def game_list_path() -> str:
    return "games/"

def game_path(game_id: str) -> str:
    return f"games/{game_id}"

def game_icon_path(game_id: str) -> str:
    return f"games/{game_id}/icon"

def game_banner_path(game_id: str) -> str:
    return f"games/{game_id}/banner"

def game_download_path(game_id: str) -> str:
    return f"games/{game_id}/game"

def tag_list_path() -> str:
    return "tags/"

def tag_path(name: str) -> str:
    return f"tags/{name}"

def tag_games_path(name: str) -> str:
    return f"tags/{name}/games"

def user_path(uid: str) -> str:
    return f"users/{uid}"

# ──────────────────────────────────────────────────────────────────────────────
# Client
# ──────────────────────────────────────────────────────────────────────────────

class CatalogClient:
    """
    Read side of the catalog service, plus the installed-games fallback used
    when the service cannot be reached.

    `base_url` and `games_root` are read from the environment on every call
    unless given here.
    """

    def __init__(self, transport: Transport, base_url: Optional[str] = None,
                 games_root: Optional[Path] = None):
        self.transport = transport
        self._base_url = base_url.rstrip("/") if base_url else None
        self._games_root = Path(games_root) if games_root else None

    def url(self, path: str) -> str:
        base = self._base_url or settings.api_url()
        return f"{base}/{path}"

    @property
    def games_root(self) -> Path:
        return self._games_root or settings.install_root()

    async def _fetch(self, path: str, decode: Callable[[Any], T]) -> T:
        url = self.url(path)
        data = await self.transport.request_json(url)
        try:
            return decode(data)
        except (TypeError, ValueError) as e:
            raise TransportError(f"Malformed payload from {url}: {e}", url=url) from e

    async def _fetch_list(self, path: str, decode: Callable[[Any], T]) -> List[T]:
        def _decode_all(data: Any) -> List[T]:
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [decode(item) for item in data]
        return await self._fetch(path, _decode_all)

    async def list_games(self) -> List[Game]:
        return await self._fetch_list(game_list_path(), Game.from_dict)

    async def get_game(self, game_id: str) -> Game:
        return await self._fetch(game_path(game_id), Game.from_dict)

    def list_games_from_storage(self) -> List[Game]:
        """Installed games, for when the service is down. Not the preferred source."""
        return scan_installed(self.games_root).items

    async def list_tags(self) -> List[Tag]:
        return await self._fetch_list(tag_list_path(), Tag.from_dict)

    async def get_tag(self, name: str) -> Tag:
        return await self._fetch(tag_path(name), Tag.from_dict)

    async def list_games_by_tag(self, name: str) -> List[Game]:
        minimals = await self._fetch_list(tag_games_path(name), MinimalGame.from_dict)
        result = await self.hydrate_games(minimals, context=f"tag {name}")
        return result.items

    async def hydrate_games(self, minimals: List[MinimalGame], context: str = "") -> BatchResult[Game]:
        """Fetch full records concurrently; failures are dropped, not raised."""
        fetched = await asyncio.gather(
            *(self.get_game(m.id) for m in minimals), return_exceptions=True
        )
        result: BatchResult[Game] = BatchResult()
        for minimal, outcome in zip(minimals, fetched):
            if isinstance(outcome, Game):
                result.items.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            log.warning("Failed to get game %s%s: %s", minimal.id,
                        f" by {context}" if context else "", outcome)
            result.diagnostics.append(Diagnostic(subject=minimal.id, error=str(outcome)))
        return result

    async def get_user(self, uid: str) -> User:
        return await self._fetch(user_path(uid), User.from_dict)
