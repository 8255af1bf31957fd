"""Bridge from watchdog's observer thread to an asyncio event queue.

The observer calls back on its own thread; events are handed to the event loop
with ``run_coroutine_threadsafe`` so they arrive in the queue in delivery order.
A full queue blocks the observer thread instead of dropping events.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import os
import threading
from pathlib import Path
from typing import List

from watchdog.events import (
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from sparklefinder.models import EventKind, WatchEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_WATCH_DEPTH = 5
DEFAULT_QUEUE_SIZE = 1024
PUBLISH_POLL_SECONDS = 0.5


def to_watch_events(event: FileSystemEvent) -> List[WatchEvent]:
    """Translate a watchdog event into zero or more :class:`WatchEvent`.

    A directory that is deleted or moved away produces one REMOVED event for the
    directory itself; the index drops everything below it. Watchdog reports the
    files inside a directory moved within the tree as separate file events.
    """
    src = Path(os.fsdecode(event.src_path))
    if event.is_directory:
        if isinstance(event, (DirDeletedEvent, DirMovedEvent)):
            return [WatchEvent(EventKind.REMOVED, src)]
        return []
    if isinstance(event, FileMovedEvent):
        dest = Path(os.fsdecode(event.dest_path))
        return [WatchEvent(EventKind.REMOVED, src), WatchEvent(EventKind.ADDED, dest)]
    if isinstance(event, FileCreatedEvent):
        return [WatchEvent(EventKind.ADDED, src)]
    if isinstance(event, FileModifiedEvent):
        return [WatchEvent(EventKind.CHANGED, src)]
    if isinstance(event, FileDeletedEvent):
        return [WatchEvent(EventKind.REMOVED, src)]
    return []


def within_watch_scope(path: Path, root: Path, depth: int) -> bool:
    """True if ``path`` sits at most ``depth`` directories below ``root``, none hidden."""
    try:
        relative = path.relative_to(root)
    except ValueError:
        return False
    directories = relative.parts[:-1]
    if len(directories) > depth:
        return False
    return not any(part.startswith(".") for part in directories)


class _QueueingHandler(FileSystemEventHandler):
    def __init__(self, source: "WatchdogEventSource") -> None:
        super().__init__()
        self._source = source

    def on_any_event(self, event: FileSystemEvent) -> None:
        for watch_event in to_watch_events(event):
            self._source.publish(watch_event)


class WatchdogEventSource:
    """Feeds file add/change/remove events below ``root`` into ``queue``."""

    def __init__(
        self,
        root: Path,
        queue: asyncio.Queue[WatchEvent | None],
        loop: asyncio.AbstractEventLoop,
        *,
        depth: int = DEFAULT_WATCH_DEPTH,
    ) -> None:
        self.root = Path(root)
        self.queue = queue
        self.loop = loop
        self.depth = depth
        self._observer: Observer | None = None
        self._stopping = threading.Event()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def publish(self, event: WatchEvent) -> None:
        """Called from the observer thread; waits while the queue is full."""
        if not within_watch_scope(event.path, self.root, self.depth):
            LOGGER.debug("Ignoring event outside watch scope: %s", event.path)
            return
        future = asyncio.run_coroutine_threadsafe(self.queue.put(event), self.loop)
        while not self._stopping.is_set():
            try:
                future.result(timeout=PUBLISH_POLL_SECONDS)
                return
            except concurrent.futures.TimeoutError:
                continue
            except Exception as exc:
                LOGGER.warning("Dropped %s event for %s: %s", event.kind.value, event.path, exc)
                return
        future.cancel()

    def start(self) -> None:
        if self._observer is not None:
            return
        self._stopping.clear()
        observer = Observer()
        observer.schedule(_QueueingHandler(self), str(self.root), recursive=self.depth > 0)
        observer.daemon = True
        observer.start()
        self._observer = observer
        LOGGER.info("Watching %s (depth %d)", self.root, self.depth)

    async def stop(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        self._stopping.set()
        observer.stop()
        await asyncio.to_thread(observer.join)
