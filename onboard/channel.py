"""
Named pipes shared with companion processes (card reader, save flusher).

Opening either end of a FIFO blocks until the other end is opened. Peers rely
on that to order their startup, so the open calls below are the
synchronization point and are meant to block.
"""
from __future__ import annotations

import asyncio
import os
import stat
from pathlib import Path
from typing import BinaryIO, Union

from .errors import ChannelError

PathLike = Union[str, Path]

FIFO_MODE = 0o644


def ensure_pipe(path: PathLike) -> None:
    """Create a FIFO at `path` unless something is already there (not type-checked)."""
    p = Path(path)
    if os.path.lexists(p):
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    os.mkfifo(p, FIFO_MODE)


def _prepare(path: PathLike, create: bool) -> Path:
    p = Path(path)
    if not p.exists():
        if not create:
            raise ChannelError(f"Path does not exist: {p}")
        ensure_pipe(p)
    try:
        mode = p.stat().st_mode
    except OSError as e:
        raise ChannelError(f"Cannot stat {p}: {e}") from e
    if not (stat.S_ISFIFO(mode) or stat.S_ISREG(mode)):
        raise ChannelError(f"Path is not a pipe or regular file: {p}")
    return p


def open_read(path: PathLike, create: bool = False) -> BinaryIO:
    """Open `path` read-only. Blocks until a writer connects."""
    p = _prepare(path, create)
    return open(p, "rb", buffering=0)


def open_write(path: PathLike, create: bool = False) -> BinaryIO:
    """Open `path` write-only. Blocks until a reader connects."""
    p = _prepare(path, create)
    # O_WRONLY without O_TRUNC: a regular file keeps its content
    return os.fdopen(os.open(p, os.O_WRONLY), "wb", buffering=0)


async def open_read_async(path: PathLike, create: bool = False) -> BinaryIO:
    return await asyncio.to_thread(open_read, path, create)


async def open_write_async(path: PathLike, create: bool = False) -> BinaryIO:
    return await asyncio.to_thread(open_write, path, create)
