import json
import logging
from pathlib import Path

from .errors import ManifestError
from .models import BatchResult, Diagnostic, Game

log = logging.getLogger(__name__)

METAFILE = "game.json"
PUBLISH_DIR = "publish"


def game_dir(root: Path, game_id: str) -> Path:
    return Path(root) / game_id


def manifest_path(root: Path, game_id: str) -> Path:
    return game_dir(root, game_id) / METAFILE


def load_manifest(path: Path) -> Game:
    """Read a game.json written at install time."""
    path = Path(path)
    log.debug("Reading game from path %s", path)
    if not path.exists():
        raise ManifestError(f"Manifest does not exist: {path}")
    if path.is_dir():
        raise ManifestError(f"Manifest path is a directory: {path}")
    try:
        data = json.loads(path.read_text("utf-8"))
        return Game.from_dict(data)
    except (OSError, ValueError) as e:
        raise ManifestError(f"Unreadable manifest {path}: {e}") from e


def save_manifest(folder: Path, game: Game) -> Path:
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / METAFILE
    path.write_text(json.dumps(game.to_dict(), indent=2), encoding="utf-8")
    return path


def scan_installed(games_root: Path) -> BatchResult[Game]:
    """
    Collect the manifests of every game directory directly under `games_root`.

    Listing the root itself may raise; a directory whose manifest is missing
    or broken is only recorded as a diagnostic.
    """
    result: BatchResult[Game] = BatchResult()
    for p in sorted(Path(games_root).iterdir()):
        if not p.is_dir():
            continue
        try:
            result.items.append(load_manifest(p / METAFILE))
        except ManifestError as e:
            log.warning("Skipping %s: %s", p.name, e)
            result.diagnostics.append(Diagnostic(subject=str(p), error=str(e)))
    return result
