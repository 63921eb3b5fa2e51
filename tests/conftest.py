from __future__ import annotations

import io
import json
import sys
import zipfile
from collections import Counter
from pathlib import Path
from typing import Dict, Optional, Set

import httpx
import pytest

# Ensure project root import when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from onboard.network import Transport

API_URL = "http://catalog.test/api"


def game_record(game_id: str, **overrides) -> dict:
    data = {
        "id": game_id,
        "author": "ccooper",
        "uploadDate": "2023-04-01T12:00:00Z",
        "name": game_id.capitalize(),
        "hash": "abc",
        "description": f"{game_id} description",
        "iconLink": f"games/{game_id}/icon",
        "bannerLink": f"games/{game_id}/banner",
    }
    data.update(overrides)
    return data


def make_bundle(files: Dict[str, bytes]) -> bytes:
    """Zip archive; names ending in '/' become directory entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return buf.getvalue()


def png_bytes(w: int = 64, h: int = 64) -> bytes:
    from PIL import Image
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (12, 34, 56)).save(buf, format="PNG")
    return buf.getvalue()


def write_manifest(root: Path, record: dict) -> Path:
    folder = root / record["id"]
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "game.json"
    path.write_text(json.dumps(record), encoding="utf-8")
    return path


class FakeCatalog:
    """In-memory catalog service served through httpx.MockTransport."""

    def __init__(self):
        self.games: Dict[str, dict] = {}
        self.bundles: Dict[str, bytes] = {}
        self.assets: Dict[str, bytes] = {}
        self.tags: Dict[str, dict] = {}
        self.tag_games: Dict[str, list] = {}
        self.users: Dict[str, dict] = {}
        self.broken: Set[str] = set()       # paths answered with HTTP 500
        self.raw: Dict[str, bytes] = {}     # paths answered with a raw body
        self.hits: Counter = Counter()

    def add_game(self, game_id: str, bundle: Optional[bytes] = None, **overrides) -> dict:
        record = game_record(game_id, **overrides)
        self.games[game_id] = record
        if bundle is not None:
            self.bundles[game_id] = bundle
        return record

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        prefix = httpx.URL(API_URL).path.rstrip("/") + "/"
        rel = path[len(prefix):] if path.startswith(prefix) else path.lstrip("/")
        self.hits[rel] += 1

        if rel in self.broken:
            return httpx.Response(500, text="boom")
        if rel in self.raw:
            return httpx.Response(200, content=self.raw[rel])

        parts = [p for p in rel.split("/") if p]
        if parts == ["games"]:
            return httpx.Response(200, json=list(self.games.values()))
        if parts == ["tags"]:
            return httpx.Response(200, json=list(self.tags.values()))
        if len(parts) == 2 and parts[0] == "games" and parts[1] in self.games:
            return httpx.Response(200, json=self.games[parts[1]])
        if len(parts) == 3 and parts[0] == "games" and parts[2] == "game" and parts[1] in self.bundles:
            return httpx.Response(200, content=self.bundles[parts[1]])
        if len(parts) == 3 and parts[0] == "games" and parts[2] in ("icon", "banner"):
            key = f"{parts[1]}/{parts[2]}"
            if key in self.assets:
                return httpx.Response(200, content=self.assets[key])
        if len(parts) == 2 and parts[0] == "tags" and parts[1] in self.tags:
            return httpx.Response(200, json=self.tags[parts[1]])
        if len(parts) == 3 and parts[0] == "tags" and parts[2] == "games" and parts[1] in self.tag_games:
            return httpx.Response(200, json=self.tag_games[parts[1]])
        if len(parts) == 2 and parts[0] == "users" and parts[1] in self.users:
            return httpx.Response(200, json=self.users[parts[1]])
        return httpx.Response(404, json={"error": "not found"})

    def transport(self) -> Transport:
        return Transport(httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))


@pytest.fixture
def games_root(tmp_path: Path, monkeypatch) -> Path:
    root = tmp_path / "devcade"
    root.mkdir()
    monkeypatch.setenv("DEVCADE_PATH", str(root))
    monkeypatch.setenv("DEVCADE_API_URL", API_URL)
    monkeypatch.setenv("ONBOARD_LAUNCH_COOLDOWN_MS", "0")
    return root


@pytest.fixture
def catalog_service() -> FakeCatalog:
    return FakeCatalog()
