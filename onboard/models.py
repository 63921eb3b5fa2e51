from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, TypeVar

T = TypeVar("T")

# camelCase keys used by the catalog service and by game.json
_GAME_KEYS = {
    "id": "id",
    "author": "author",
    "upload_date": "uploadDate",
    "name": "name",
    "hash": "hash",
    "description": "description",
    "icon_link": "iconLink",
    "banner_link": "bannerLink",
}


@dataclass
class Game:
    id: str
    author: str
    upload_date: str
    name: str
    hash: str
    description: str
    icon_link: str
    banner_link: str

    @classmethod
    def empty(cls) -> "Game":
        return cls(**{k: "" for k in _GAME_KEYS})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Game":
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object for a game, got {type(data).__name__}")
        missing = [wire for wire in _GAME_KEYS.values() if wire not in data]
        if missing:
            raise ValueError(f"game is missing fields: {', '.join(missing)}")
        return cls(**{attr: "" if data[wire] is None else str(data[wire])
                      for attr, wire in _GAME_KEYS.items()})

    def to_dict(self) -> Dict[str, str]:
        return {wire: getattr(self, attr) for attr, wire in _GAME_KEYS.items()}


@dataclass
class MinimalGame:
    id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MinimalGame":
        if not isinstance(data, dict) or "id" not in data:
            raise ValueError("minimal game has no id")
        return cls(id=str(data["id"]))


@dataclass
class Tag:
    name: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        if not isinstance(data, dict) or "name" not in data:
            raise ValueError("tag has no name")
        return cls(name=str(data["name"]), description=str(data.get("description", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description}


@dataclass
class User:
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        if not isinstance(data, dict) or "id" not in data:
            raise ValueError("user has no id")
        rest = {k: v for k, v in data.items() if k != "id"}
        return cls(id=str(data["id"]), attributes=rest)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.attributes}


class Player(Enum):
    P1 = "P1"
    P2 = "P2"


@dataclass
class Diagnostic:
    subject: str    # path, archive entry or game id
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"subject": self.subject, "error": self.error}


@dataclass
class BatchResult(Generic[T]):
    """Outcome of a bulk operation that skips bad entries instead of failing."""
    items: List[T] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics
