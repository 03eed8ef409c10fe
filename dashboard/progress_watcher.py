"""
Push progress-file changes to connected dashboard browsers.

`ProgressWatcher` runs a watchdog observer on the progress file's directory.
Every create, modify or move onto `.progress.json` is handed back to the event
loop, where the file is parsed and passed, unmodified, to
`ConnectionManager.broadcast`. The reporter writes through a temp file and
`os.replace`, so most updates arrive as a move.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from fastapi import WebSocket
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from shared.logging import get_logger

logger = get_logger(__name__)

PROGRESS_EVENT = "progress-update"


def progress_message(data: Any) -> dict:
    return {"event": PROGRESS_EVENT, "data": data}


def read_progress_json(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("progress_file_read_failed", path=str(path), error=str(e))
        return None


class ConnectionManager:
    def __init__(self) -> None:
        self.active: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active.append(websocket)
        logger.info("websocket_connected", clients=len(self.active))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active:
            self.active.remove(websocket)
        logger.info("websocket_disconnected", clients=len(self.active))

    async def broadcast(self, message: dict) -> None:
        for websocket in list(self.active):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug("websocket_send_failed", error=str(e))
                self.disconnect(websocket)


class ProgressFileHandler(FileSystemEventHandler):
    """Forwards events that land on the progress file; temp files and siblings are ignored."""

    def __init__(self, progress_file: Path, notify: Callable[[], None]) -> None:
        self.progress_file = progress_file
        self.notify = notify

    def _matches(self, path: Any) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return bool(path) and Path(path).name == self.progress_file.name

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self.notify()

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self.notify()

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(getattr(event, "dest_path", "")):
            self.notify()


class ProgressWatcher:
    def __init__(
        self,
        progress_file: str | Path,
        on_change: Callable[[dict], Awaitable[None]],
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.progress_file = Path(progress_file)
        self.on_change = on_change
        self.observer_factory = observer_factory
        self.handler = ProgressFileHandler(self.progress_file, self.notify_changed)
        self._observer: Optional[Any] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    async def handle_change(self) -> bool:
        """Broadcast the current file content. Unreadable or half-written files are skipped."""
        data = read_progress_json(self.progress_file)
        if data is None:
            return False
        try:
            await self.on_change(progress_message(data))
        except Exception as e:
            logger.error("progress_broadcast_failed", error=str(e), error_type=type(e).__name__)
            return False
        return True

    def notify_changed(self) -> None:
        """Called from the observer thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.handle_change(), loop)

    def start(self) -> None:
        if self._observer is not None:
            return
        self._loop = asyncio.get_running_loop()
        directory = self.progress_file.parent
        directory.mkdir(parents=True, exist_ok=True)

        observer = self.observer_factory()
        observer.schedule(self.handler, str(directory), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("progress_watch_started", path=str(self.progress_file))

    async def stop(self) -> None:
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        await asyncio.to_thread(observer.join)
        self._loop = None
        logger.info("progress_watch_stopped", path=str(self.progress_file))
