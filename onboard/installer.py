from __future__ import annotations

import asyncio
import io
import logging
import shutil
import zipfile
import zlib
from pathlib import Path
from typing import Optional

from . import settings
from .catalog import CatalogClient, game_banner_path, game_download_path, game_icon_path
from .errors import InstallError, ManifestError
from .models import BatchResult, Diagnostic, Game
from .scanning import game_dir, load_manifest, manifest_path, save_manifest
from .utils import image_size

log = logging.getLogger(__name__)

ASSET_ROUTES = {
    "icon": game_icon_path,
    "banner": game_banner_path,
}

_COPY_ERRORS = (OSError, zipfile.BadZipFile, zlib.error, RuntimeError, EOFError)


def _is_within(root: Path, target: Path) -> bool:
    try:
        target.resolve().relative_to(root)
        return True
    except ValueError:
        return False


def extract_bundle(data: bytes, dest: Path) -> BatchResult[Path]:
    """
    Unpack a zip archive into `dest`, one entry at a time.

    An entry that cannot be written is recorded and skipped; only an archive
    that cannot be opened at all raises.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, ValueError) as e:
        raise InstallError(f"Bundle is not a readable archive: {e}") from e

    dest = Path(dest)
    root = dest.resolve()
    result: BatchResult[Path] = BatchResult()

    def _fail(subject: Path, what: str, err: Exception) -> None:
        log.warning("Error %s %s: %s", what, subject, err)
        result.diagnostics.append(Diagnostic(subject=str(subject), error=f"{what}: {err}"))

    with archive:
        for info in archive.infolist():
            out_path = dest / info.filename
            log.debug("Unzipping file %s to %s", info.filename, out_path)
            if not _is_within(root, out_path):
                _fail(out_path, "extracting", ValueError("entry escapes the install directory"))
                continue

            if info.is_dir():
                try:
                    out_path.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    _fail(out_path, "creating directory", e)
                continue

            if not out_path.parent.exists():
                try:
                    out_path.parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    _fail(out_path.parent, "creating directory", e)

            try:
                outfile = open(out_path, "wb")
            except OSError as e:
                _fail(out_path, "creating file", e)
                continue
            with outfile:
                try:
                    with archive.open(info) as src:
                        shutil.copyfileobj(src, outfile)
                except _COPY_ERRORS as e:
                    _fail(out_path, "copying file", e)
                    continue
            result.items.append(out_path)
    return result


class Installer:
    """
    Downloads bundles into `{root}/{game_id}` and keeps game.json in step with
    the catalog hash.

    strict: write the manifest only when every archive entry extracted. With
    strict=False the manifest is written regardless, so a partial install can
    later look up to date.
    """

    def __init__(self, catalog: CatalogClient, games_root: Optional[Path] = None, strict: bool = True):
        self.catalog = catalog
        self._games_root = Path(games_root) if games_root else None
        self.strict = strict

    @property
    def games_root(self) -> Path:
        return self._games_root or settings.install_root()

    def is_current(self, game: Game) -> bool:
        path = manifest_path(self.games_root, game.id)
        if not path.exists():
            return False
        try:
            return load_manifest(path).hash == game.hash
        except ManifestError as e:
            log.debug("Cached manifest for %s unusable: %s", game.id, e)
            return False

    async def ensure_installed(self, game_id: str) -> Game:
        """Download and unpack `game_id` unless the cached copy has the catalog's hash."""
        game = await self.catalog.get_game(game_id)
        if self.is_current(game):
            log.debug("Game %s is up to date (hash %s)", game.name, game.hash)
            return game

        log.info("Downloading game %s...", game.name)
        data = await self.catalog.transport.request_bytes(
            self.catalog.url(game_download_path(game_id))
        )

        log.info("Unzipping game %s...", game.name)
        log.debug("Zip file size: %d bytes", len(data))
        folder = game_dir(self.games_root, game.id)
        report = await asyncio.to_thread(extract_bundle, data, folder)

        if report.diagnostics:
            log.warning("%d of the entries in %s failed to extract",
                        len(report.diagnostics), game.name)
            if self.strict:
                raise InstallError(
                    f"Failed to extract {len(report.diagnostics)} file(s) of game {game.name}",
                    diagnostics=report.diagnostics,
                )

        log.debug("Writing game.json file for game %s...", game.name)
        try:
            await asyncio.to_thread(save_manifest, folder, game)
        except OSError as e:
            raise InstallError(f"Error writing game.json for {game.name}: {e}") from e
        return game

    async def download_asset(self, game_id: str, kind: str) -> Path:
        """Fetch the icon or banner once; an existing file is left alone."""
        if kind not in ASSET_ROUTES:
            raise ValueError(f"Unknown asset kind: {kind!r}")
        path = game_dir(self.games_root, game_id) / f"{kind}.png"
        if path.exists():
            return path
        path.parent.mkdir(parents=True, exist_ok=True)

        data = await self.catalog.transport.request_bytes(
            self.catalog.url(ASSET_ROUTES[kind](game_id))
        )
        if image_size(data) is None:
            log.warning("%s for game %s is not a recognizable image", kind, game_id)
        await asyncio.to_thread(path.write_bytes, data)
        return path
