"""Wiring of the sandbox components behind one object."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List

from sparklefinder.activity.recent import RecentActivityTracker
from sparklefinder.config import AppConfig
from sparklefinder.errors import SandboxError
from sparklefinder.index.directory import DirectoryIndex
from sparklefinder.index.matchers import TieredMatcher
from sparklefinder.index.search import AdHocSearcher, merge_results
from sparklefinder.index.watcher import DEFAULT_QUEUE_SIZE, WatchdogEventSource
from sparklefinder.models import SearchOptions, SearchResult, WatchEvent
from sparklefinder.security.guard import PathGuard

LOGGER = logging.getLogger(__name__)


class SparkleService:
    """Owns the guard, the index, the ad-hoc searcher and the recent-file tracker."""

    def __init__(self, config: AppConfig | None = None, *, matcher: TieredMatcher | None = None) -> None:
        self.config = config or AppConfig()
        self.root = self.config.resolve_sandbox_root()
        self.guard = PathGuard(self.config.build_policy())
        self.index = DirectoryIndex(self.root, self.guard, auto_rename=self.config.auto_rename)
        self.searcher = AdHocSearcher(self.guard, matcher)
        self.recent = RecentActivityTracker()
        self._watchers: List[
            tuple[WatchdogEventSource, asyncio.Queue[WatchEvent | None], asyncio.Task]
        ] = []

    @property
    def watching(self) -> bool:
        return bool(self._watchers)

    async def start(self, *, watch: bool | None = None) -> None:
        """Run the initial scan, then start watchers if enabled."""
        await self.index.start()
        if not (self.config.watcher_enabled if watch is None else watch):
            return

        self._watch(self.index.canonical_root, self.config.watch_depth, self.index.process_events)

        if self.config.track_downloads:
            downloads = self.config.resolve_downloads_path()
            if downloads.is_dir():
                self._watch(downloads, 0, self._consume_recent)
            else:
                LOGGER.warning("Downloads folder %s not found, not tracking downloads", downloads)

    async def stop(self) -> None:
        watchers, self._watchers = self._watchers, []
        for source, queue, task in watchers:
            await source.stop()
            await queue.put(None)
            await task

    async def find_relevant(self, query: str, limit: int = 10) -> List[SearchResult]:
        """Index hits merged with recently seen files, each re-validated.

        Candidates are checked best-first until ``limit`` of them pass, so a
        rejected file is replaced by the next valid one.
        """
        await self.index.wait_until_ready()
        candidates = await self.index.find_relevant(query, max(len(self.index), limit))
        candidates.extend(self.recent.find_relevant(query, len(self.recent)))

        validated: List[SearchResult] = []
        for result in merge_results(candidates, len(candidates)):
            if len(validated) >= limit:
                break
            try:
                await asyncio.to_thread(self.guard.validate, result.path)
            except (SandboxError, OSError) as exc:
                LOGGER.info("Skipping invalid path %s: %s", result.path, exc)
                continue
            validated.append(result)
        return validated

    async def search(self, options: SearchOptions) -> List[SearchResult]:
        return await self.searcher.search(options)

    def _watch(
        self,
        root: Path,
        depth: int,
        consumer: Callable[[asyncio.Queue[WatchEvent | None]], Awaitable[None]],
    ) -> None:
        queue: asyncio.Queue[WatchEvent | None] = asyncio.Queue(maxsize=DEFAULT_QUEUE_SIZE)
        source = WatchdogEventSource(root, queue, asyncio.get_running_loop(), depth=depth)
        task = asyncio.create_task(consumer(queue))
        source.start()
        self._watchers.append((source, queue, task))

    async def _consume_recent(self, queue: asyncio.Queue[WatchEvent | None]) -> None:
        while True:
            event: WatchEvent | None = await queue.get()
            try:
                if event is None:
                    return
                self.recent.handle_event(event)
            finally:
                queue.task_done()
