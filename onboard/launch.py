# onboard/launch.py
from __future__ import annotations

import asyncio
import logging
import stat
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional

from . import settings
from .collaborators import NullPersistence, Persistence
from .errors import LaunchError, ManifestError
from .installer import Installer
from .models import Game
from .scanning import METAFILE, PUBLISH_DIR, game_dir, load_manifest
from .state import CurrentGame

log = logging.getLogger(__name__)

RUNTIME_DESCRIPTOR = "runtimeconfig.json"

# ──────────────────────────────────────────────────────────────────────────────
# Small helpers
# ──────────────────────────────────────────────────────────────────────────────

def _top_level_files(folder: Path):
    try:
        entries = sorted(folder.iterdir())
    except OSError as e:
        raise LaunchError(f"Cannot list {folder}: {e}") from e
    for p in entries:
        try:
            if p.is_file():
                yield p
        except OSError:
            continue

def executable_from_descriptor(publish: Path) -> Optional[str]:
    """Name of the program a `<name>.runtimeconfig.json` file belongs to, if there is one."""
    for p in _top_level_files(publish):
        if not p.name.endswith(RUNTIME_DESCRIPTOR):
            continue
        name = p.name[: -len(RUNTIME_DESCRIPTOR)].rstrip(".")
        if not name:
            continue
        log.debug("Found runtimeconfig.json file: %s", p.name)
        return name
    return None

def resolve_executable(publish: Path, fallback_name: str) -> Path:
    """
    Pick the file to run inside `publish`: inferred from the runtime
    descriptor when present, otherwise the game's display name. An exact
    match wins; a case-insensitive match is accepted otherwise.
    """
    name = executable_from_descriptor(publish) or fallback_name
    log.debug("Executable name: %s", name)
    if name:
        path = publish / name
        if path.is_file():
            return path
        for p in _top_level_files(publish):
            if p.name.lower() == name.lower():
                return p
    raise LaunchError(f"Game executable not found: {publish / name}")

def mark_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

def _installed_manifest(folder: Path) -> Optional[Game]:
    """The cached manifest, or None when the game still needs installing."""
    if not (folder / PUBLISH_DIR).exists():
        return None
    try:
        return load_manifest(folder / METAFILE)
    except ManifestError as e:
        # a failed install can leave publish/ behind without a manifest
        log.debug("Reinstalling from %s: %s", folder, e)
        return None

# ──────────────────────────────────────────────────────────────────────────────
# Supervisor
# ──────────────────────────────────────────────────────────────────────────────

class LaunchState(Enum):
    NOT_INSTALLED = "not_installed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    RESOLVING_EXECUTABLE = "resolving_executable"
    PERMISSIONED = "permissioned"
    RUNNING = "running"
    EXITED = "exited"


class LaunchSupervisor:
    """
    Installs if needed, swaps the current game, and runs the game to completion.
    Launches are expected to be serialized by the caller.
    """

    def __init__(self, installer: Installer, current: CurrentGame,
                 persistence: Optional[Persistence] = None,
                 cooldown: Optional[float] = None):
        self.installer = installer
        self.current = current
        self.persistence = persistence or NullPersistence()
        self._cooldown = cooldown
        self.state: Optional[LaunchState] = None
        self.last_exit_code: Optional[int] = None

    @property
    def cooldown(self) -> float:
        return self._cooldown if self._cooldown is not None else settings.launch_cooldown()

    def _enter(self, state: LaunchState, game_id: str) -> None:
        log.debug("Game %s: %s", game_id, state.value)
        self.state = state

    async def _flush_saves(self) -> None:
        # the previous game may not have flushed before exiting
        try:
            await self.persistence.flush()
        except Exception as e:
            log.warning("Failed to flush save cache: %s", e)

    async def launch(self, game_id: str) -> int:
        """Run `game_id` and wait for it to exit. Returns the exit code."""
        folder = game_dir(self.installer.games_root, game_id)
        publish = folder / PUBLISH_DIR
        log.info("Launching game %s...", game_id)
        log.debug("Game path: %s", publish)

        game = _installed_manifest(folder)
        if game is None:
            self._enter(LaunchState.NOT_INSTALLED, game_id)
            self._enter(LaunchState.INSTALLING, game_id)
            await self.installer.ensure_installed(game_id)
            game = load_manifest(folder / METAFILE)
        self._enter(LaunchState.INSTALLED, game_id)

        await self._flush_saves()
        self.current.set(game)

        self._enter(LaunchState.RESOLVING_EXECUTABLE, game_id)
        if not publish.is_dir():
            raise LaunchError(f"Game {game_id} has no {PUBLISH_DIR} directory")
        executable = resolve_executable(publish, game.name)

        try:
            mark_executable(executable)
        except OSError as e:
            raise LaunchError(f"Cannot make {executable} executable: {e}") from e
        self._enter(LaunchState.PERMISSIONED, game_id)

        # stdout is silenced; stderr goes straight to ours, outside of logging
        try:
            proc = await asyncio.create_subprocess_exec(
                str(executable),
                cwd=str(publish),
                stdout=subprocess.DEVNULL,
                stderr=None,
            )
        except OSError as e:
            raise LaunchError(f"Failed to launch game {game.name}: {e}") from e
        self._enter(LaunchState.RUNNING, game_id)

        try:
            code = await proc.wait()
        except OSError as e:
            raise LaunchError(f"Failed waiting for game {game.name}: {e}") from e
        self.last_exit_code = code
        self._enter(LaunchState.EXITED, game_id)
        log.info("Game %s exited with code %s", game.name, code)

        await asyncio.sleep(self.cooldown)
        return code
