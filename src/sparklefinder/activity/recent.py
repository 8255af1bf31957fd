"""Tracking of recently seen files that live outside the main index."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Literal

from sparklefinder.index.scoring import RelevanceScorer
from sparklefinder.models import EventKind, RecentFile, SearchResult, WatchEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 24 * 60 * 60


def time_ago(seconds: float) -> str:
    seconds = int(max(seconds, 0))
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60} minutes ago"
    if seconds < 86400:
        return f"{seconds // 3600} hours ago"
    return f"{seconds // 86400} days ago"


class RecentActivityTracker:
    """Remembers files seen in the last ``max_age`` seconds, e.g. new downloads."""

    def __init__(
        self,
        *,
        max_age: float = DEFAULT_MAX_AGE,
        scorer: RelevanceScorer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_age = max_age
        self.scorer = scorer or RelevanceScorer()
        self._clock = clock
        self._files: Dict[Path, RecentFile] = {}

    def __len__(self) -> int:
        return len(self._files)

    def record(
        self, path: Path, source: Literal["download", "clipboard", "created"] = "download"
    ) -> RecentFile:
        LOGGER.info("New %s file: %s", source, path)
        recent = RecentFile(path=Path(path), seen_at=self._clock(), source=source)
        self._files[recent.path] = recent
        return recent

    def handle_event(self, event: WatchEvent) -> None:
        if event.kind is EventKind.ADDED:
            self.record(event.path, "download")
        elif event.kind is EventKind.REMOVED:
            self._files.pop(event.path, None)

    def prune(self, now: float | None = None) -> int:
        """Forget entries older than ``max_age``; returns how many were dropped."""
        now = self._clock() if now is None else now
        expired = [path for path, recent in self._files.items() if now - recent.seen_at > self.max_age]
        for path in expired:
            del self._files[path]
        return len(expired)

    def find_relevant(self, query: str, limit: int, *, now: float | None = None) -> List[SearchResult]:
        now = self._clock() if now is None else now
        self.prune(now)
        results: List[SearchResult] = []
        for recent in self._files.values():
            relevance = self.scorer.recency_score(query, recent.path.name, recent.seen_at, now=now)
            if relevance <= 0:
                continue
            results.append(
                SearchResult(
                    path=recent.path,
                    relevance=relevance,
                    summary=f"Recent {recent.source} ({time_ago(now - recent.seen_at)})",
                    source="recent",
                )
            )
        results.sort(key=lambda result: (-result.relevance, str(result.path)))
        return results[: max(limit, 0)]
