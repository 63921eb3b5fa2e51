from __future__ import annotations

import asyncio
import os
import stat
import threading

import pytest

from onboard.channel import ensure_pipe, open_read, open_read_async, open_write
from onboard.errors import ChannelError


def test_missing_path_without_create_fails_cleanly(tmp_path):
    target = tmp_path / "run" / "nfc.pipe"
    with pytest.raises(ChannelError, match="does not exist"):
        open_read(target, create=False)
    with pytest.raises(ChannelError):
        open_write(target, create=False)
    assert not (tmp_path / "run").exists()


def test_ensure_pipe_creates_parents_and_fifo(tmp_path):
    target = tmp_path / "a" / "b" / "flush.pipe"
    ensure_pipe(target)
    assert stat.S_ISFIFO(os.stat(target).st_mode)
    ensure_pipe(target)


def test_ensure_pipe_leaves_existing_entries_alone(tmp_path):
    target = tmp_path / "plain.txt"
    target.write_text("keep me")
    ensure_pipe(target)
    assert target.read_text() == "keep me"
    assert stat.S_ISREG(os.stat(target).st_mode)


def test_directories_are_rejected(tmp_path):
    with pytest.raises(ChannelError, match="not a pipe"):
        open_read(tmp_path, create=True)


def test_regular_file_write_keeps_content(tmp_path):
    target = tmp_path / "session.log"
    target.write_bytes(b"0123456789")
    with open_write(target) as fh:
        fh.write(b"ab")
    assert target.read_bytes() == b"ab23456789"


def test_create_then_block_until_writer_connects(tmp_path):
    target = tmp_path / "ipc" / "nfc.pipe"
    received = {}

    def _reader():
        with open_read(target, create=True) as fh:
            received["data"] = fh.read()

    t = threading.Thread(target=_reader, daemon=True)
    t.start()

    # the reader has created the FIFO and is parked in open() until a writer shows up
    for _ in range(100):
        if target.exists():
            break
        threading.Event().wait(0.01)
    assert stat.S_ISFIFO(os.stat(target).st_mode)
    t.join(timeout=0.2)
    assert t.is_alive()

    with open_write(target) as fh:
        fh.write(b"card:1234")
    t.join(timeout=5)
    assert not t.is_alive()
    assert received["data"] == b"card:1234"


def test_async_open_does_not_stall_the_loop(tmp_path):
    target = tmp_path / "flush.pipe"
    ensure_pipe(target)

    async def _main():
        ticks = 0
        pending = asyncio.ensure_future(open_read_async(target))
        while not pending.done() and ticks < 5:
            await asyncio.sleep(0.01)
            ticks += 1
        assert not pending.done()

        writer = await asyncio.to_thread(open_write, target)
        reader = await pending
        with writer, reader:
            writer.write(b"flush")
            writer.close()
            return ticks, reader.read()

    ticks, data = asyncio.run(_main())
    assert ticks == 5
    assert data == b"flush"
