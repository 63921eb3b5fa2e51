from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .errors import CollaboratorError
from .models import Player


class CardReader(Protocol):
    async def submit_read(self, player: Player) -> Optional[str]:
        """Wait for a card on `player`'s reader; the tag's association id, if any."""

    async def resolve_identity(self, association_id: str) -> Dict[str, Any]:
        """Attributes of the user a tag is associated with."""

class Persistence(Protocol):
    async def flush(self) -> None:
        """Write out pending save data. Raises on failure."""

class NullPersistence:
    async def flush(self) -> None:
        return None

async def read_tag(reader: Optional[CardReader], player: Player) -> Optional[str]:
    if player is not Player.P1:
        raise CollaboratorError(f"No card reader for player {player.value}")
    if reader is None:
        raise CollaboratorError("No card reader configured")
    try:
        return await reader.submit_read(player)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(f"Couldn't get NFC tags: {e!r}") from e

async def read_user(reader: Optional[CardReader], association_id: str) -> Dict[str, Any]:
    if reader is None:
        raise CollaboratorError("No card reader configured")
    try:
        return await reader.resolve_identity(association_id)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(f"Couldn't get NFC user: {e!r}") from e
