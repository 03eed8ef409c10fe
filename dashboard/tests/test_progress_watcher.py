"""Unit tests for the progress-file watcher and the websocket broadcaster."""

from __future__ import annotations

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from dashboard.progress_watcher import ConnectionManager, ProgressFileHandler, ProgressWatcher


@pytest.mark.asyncio
async def test_every_change_is_broadcast_even_with_same_mtime(tmp_path):
    progress_file = tmp_path / ".progress.json"
    seen = []

    async def on_change(message):
        seen.append(message["data"]["totalClicks"])

    watcher = ProgressWatcher(progress_file, on_change)

    progress_file.write_text('{"totalClicks": 1}')
    stat = progress_file.stat()
    assert await watcher.handle_change() is True

    progress_file.write_text('{"totalClicks": 2}')
    os.utime(progress_file, ns=(stat.st_atime_ns, stat.st_mtime_ns))
    assert await watcher.handle_change() is True

    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_missing_or_unparseable_file_is_skipped(tmp_path):
    progress_file = tmp_path / ".progress.json"
    on_change = AsyncMock()
    watcher = ProgressWatcher(progress_file, on_change)

    assert await watcher.handle_change() is False
    progress_file.write_text("{half written")
    assert await watcher.handle_change() is False
    on_change.assert_not_awaited()


def test_handler_only_forwards_progress_file_events(tmp_path):
    progress_file = tmp_path / ".progress.json"
    notify = MagicMock()
    handler = ProgressFileHandler(progress_file, notify)
    temp_file = str(tmp_path / ".progress-abc.tmp")

    handler.on_created(FileCreatedEvent(temp_file))
    handler.on_modified(FileModifiedEvent(temp_file))
    handler.on_modified(FileModifiedEvent(str(tmp_path / ".stop-signal")))
    handler.on_modified(DirModifiedEvent(str(tmp_path)))
    assert notify.call_count == 0

    handler.on_moved(FileMovedEvent(temp_file, str(progress_file)))
    handler.on_modified(FileModifiedEvent(str(progress_file)))
    handler.on_created(FileCreatedEvent(str(progress_file)))
    assert notify.call_count == 3


@pytest.mark.asyncio
async def test_start_schedules_observer_on_progress_dir(tmp_path):
    observer = MagicMock()
    watcher = ProgressWatcher(tmp_path / "monitoring" / ".progress.json", AsyncMock(), observer_factory=lambda: observer)

    watcher.start()
    watcher.start()

    observer.schedule.assert_called_once_with(watcher.handler, str(tmp_path / "monitoring"), recursive=False)
    observer.start.assert_called_once()
    assert watcher.is_running

    await watcher.stop()
    observer.stop.assert_called_once()
    observer.join.assert_called_once()
    assert not watcher.is_running


@pytest.mark.asyncio
async def test_atomic_replace_reaches_subscriber(tmp_path):
    progress_file = tmp_path / ".progress.json"
    received: asyncio.Queue = asyncio.Queue()

    async def on_change(message):
        await received.put(message)

    watcher = ProgressWatcher(progress_file, on_change)
    watcher.start()
    try:
        temp_file = tmp_path / ".progress-1.tmp"
        temp_file.write_text('{"status": "running", "totalClicks": 3}')
        os.replace(temp_file, progress_file)

        message = await asyncio.wait_for(received.get(), timeout=5)
    finally:
        await watcher.stop()

    assert message == {"event": "progress-update", "data": {"status": "running", "totalClicks": 3}}


@pytest.mark.asyncio
async def test_broadcast_drops_dead_sockets():
    manager = ConnectionManager()
    alive = MagicMock(accept=AsyncMock(), send_json=AsyncMock())
    dead = MagicMock(accept=AsyncMock(), send_json=AsyncMock(side_effect=RuntimeError("closed")))
    await manager.connect(alive)
    await manager.connect(dead)

    await manager.broadcast({"event": "progress-update", "data": {}})

    alive.send_json.assert_awaited_once()
    assert manager.active == [alive]
