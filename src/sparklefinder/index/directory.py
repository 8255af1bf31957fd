"""In-memory index of the sandbox folder, kept fresh by watch events."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import re
import stat
import time
from datetime import date
from pathlib import Path
from typing import Callable, List

from sparklefinder.embedding.hashing import HashEmbeddingModel
from sparklefinder.errors import AccessDenied, IndexNotReady, NotFound
from sparklefinder.index.scoring import RelevanceScorer
from sparklefinder.ingestion.text_loader import load_sample
from sparklefinder.models import (
    EventKind,
    FileMetadata,
    FileType,
    IndexState,
    SearchResult,
    WatchEvent,
)
from sparklefinder.security.guard import PathGuard, PathLike, canonicalize, sanitize_filename
from sparklefinder.utils.files import ensure_sandbox_root, iter_files

LOGGER = logging.getLogger(__name__)

GENERIC_NAME_PATTERNS = (
    re.compile(r"^IMG_\d+"),
    re.compile(r"^DSC\d+"),
    re.compile(r"^Screenshot"),
    re.compile(r"^audio_recording"),
    re.compile(r"^REC\d+"),
    re.compile(r"^untitled", re.IGNORECASE),
)


def needs_better_name(name: str) -> bool:
    """True for camera, recorder and screenshot default names."""
    return any(pattern.match(name) for pattern in GENERIC_NAME_PATTERNS)


def enhanced_name(name: str, day: date) -> str:
    return sanitize_filename(f"enhanced_{day.isoformat()}_{name}")


class DirectoryIndex:
    """Authoritative path -> metadata mapping for one sandbox root.

    The index goes ``UNINITIALIZED -> SCANNING -> READY`` once and stays ready
    for its lifetime; watch events then update entries in place. Entries are
    replaced whole, never mutated, so a concurrent query sees either the old or
    the new version of a file.
    """

    def __init__(
        self,
        root: Path,
        guard: PathGuard,
        *,
        embedder: HashEmbeddingModel | None = None,
        scorer: RelevanceScorer | None = None,
        auto_rename: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root = Path(root).expanduser().absolute()
        self.guard = guard
        self.embedder = embedder or HashEmbeddingModel()
        self.scorer = scorer or RelevanceScorer()
        self.auto_rename = auto_rename
        self.state = IndexState.UNINITIALIZED
        self.degraded = False
        self.scan_error: BaseException | None = None
        self.skipped = 0
        self._clock = clock
        self._canonical_root = Path(canonicalize(self.root))
        self._entries: dict[str, FileMetadata] = {}
        self._ready = asyncio.Event()

    @property
    def ready(self) -> bool:
        return self.state is IndexState.READY

    @property
    def canonical_root(self) -> Path:
        return self._canonical_root

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def paths(self) -> List[str]:
        return sorted(self._entries)

    def get(self, path: str) -> FileMetadata | None:
        """Copy of the entry stored under the sandbox-relative ``path``."""
        if not self.ready:
            raise IndexNotReady("Index is still scanning")
        entry = self._entries.get(path)
        if entry is None:
            return None
        return dataclasses.replace(entry, embedding=entry.embedding.copy())

    async def start(self) -> None:
        """Create the root if needed and run the initial full scan.

        Always ends in ``READY``; a failed scan leaves the index empty and marks
        it degraded instead of raising.
        """
        if self.state is not IndexState.UNINITIALIZED:
            return
        self.state = IndexState.SCANNING
        try:
            await asyncio.to_thread(ensure_sandbox_root, self.root)
            self._canonical_root = await asyncio.to_thread(self.guard.validate_search_path, self.root)
            if not os.access(self._canonical_root, os.R_OK | os.X_OK):
                raise PermissionError(f"Sandbox root is not readable: {self.root}")
            files = await asyncio.to_thread(lambda: list(iter_files(self._canonical_root)))
            for path in files:
                try:
                    await self.index_file(path)
                except Exception as exc:
                    LOGGER.warning("Skipping %s: %s", path, exc)
                    self.skipped += 1
            LOGGER.info("Indexed %d files in %s", len(self._entries), self.root)
        except Exception as exc:
            LOGGER.error("Error indexing %s: %s", self.root, exc)
            self._entries.clear()
            self.degraded = True
            self.scan_error = exc
        finally:
            self.state = IndexState.READY
            self._ready.set()

    async def wait_until_ready(self, timeout: float | None = None) -> None:
        """Suspend until the initial scan is done; callers may bound the wait."""
        if self.ready:
            return
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError as exc:
            raise IndexNotReady(f"Index not ready after {timeout} seconds") from exc

    async def index_file(self, path: PathLike) -> FileMetadata:
        """Index one file and store it under its sandbox-relative key.

        Raises on validation or I/O failure; callers decide whether to skip.
        """
        resolved = await asyncio.to_thread(
            self.guard.validate, self._absolute(path), enforce_size=False
        )
        key = self._relative_key(str(resolved))
        if key is None:
            raise AccessDenied(f"Access denied: {path} is outside the sandbox root")

        st = await asyncio.to_thread(resolved.stat)
        if not stat.S_ISREG(st.st_mode):
            raise IsADirectoryError(f"Not a regular file: {path}")

        sample = await asyncio.to_thread(load_sample, resolved)
        metadata = FileMetadata(
            path=key,
            name=resolved.name,
            size=st.st_size,
            modified=st.st_mtime,
            file_type=FileType.from_extension(resolved.suffix),
            embedding=self.embedder.embed_metadata(resolved.name, sample.content),
            content=sample.content,
            summary=sample.summary,
        )
        self._entries[key] = metadata
        return metadata

    async def handle_event(self, event: WatchEvent) -> None:
        """Apply one watch event. Failures are logged, never raised."""
        try:
            if event.kind is EventKind.REMOVED:
                LOGGER.info("File removed: %s", event.path)
                self._remove(event.path)
            elif event.kind is EventKind.CHANGED:
                LOGGER.info("File changed: %s", event.path)
                await self._reindex(event.path)
            else:
                LOGGER.info("New file in Sparkle folder: %s", event.path)
                metadata = await self._reindex(event.path)
                if metadata is not None and self.auto_rename and needs_better_name(metadata.name):
                    await self._enhance_name(metadata)
        except Exception as exc:
            LOGGER.error("Failed to handle %s event for %s: %s", event.kind.value, event.path, exc)

    async def process_events(self, queue: asyncio.Queue[WatchEvent | None]) -> None:
        """Consume events in delivery order until a ``None`` sentinel arrives."""
        await self.wait_until_ready()
        while True:
            event = await queue.get()
            try:
                if event is None:
                    return
                await self.handle_event(event)
            finally:
                queue.task_done()

    async def find_relevant(self, query: str, limit: int = 10) -> List[SearchResult]:
        """Rank every entry against ``query`` and return the best ``limit``.

        This is a linear scan over the whole index, which is fine for a single
        personal folder.
        """
        await self.wait_until_ready()
        if limit <= 0:
            return []

        query_embedding = self.embedder.embed_query(query)
        now = self._clock()
        results: List[SearchResult] = []
        for key, metadata in list(self._entries.items()):
            relevance = self.scorer.score(
                query, metadata, query_embedding, metadata.embedding, now=now
            )
            results.append(
                SearchResult(
                    path=self._canonical_root / key,
                    relevance=relevance,
                    summary=metadata.summary,
                    source="index",
                )
            )

        results.sort(key=lambda result: (-result.relevance, str(result.path)))
        return results[:limit]

    async def _reindex(self, path: Path) -> FileMetadata | None:
        try:
            return await self.index_file(path)
        except NotFound:
            LOGGER.debug("%s vanished before it could be indexed", path)
            self._remove(path)
            return None

    async def _enhance_name(self, metadata: FileMetadata) -> None:
        source = self._canonical_root / metadata.path
        target = source.with_name(enhanced_name(metadata.name, date.fromtimestamp(self._clock())))
        if target.exists():
            LOGGER.warning("Not renaming %s: %s already exists", source, target.name)
            return
        if not self.guard.contains(target):
            raise AccessDenied(f"Access denied: rename target {target} is outside the sandbox")

        try:
            await asyncio.to_thread(os.rename, source, target)
        except OSError as exc:
            LOGGER.error("Error renaming %s: %s", source, exc)
            return

        LOGGER.info("Renamed %s to %s", source, target)
        self._entries.pop(metadata.path, None)
        await self.index_file(target)

    def _remove(self, path: PathLike) -> None:
        key = self._relative_key(canonicalize(self._absolute(path)))
        if key is None:
            return
        if self._entries.pop(key, None) is not None:
            return
        # A directory went away: drop everything that lived under it.
        if key == ".":
            self._entries.clear()
            return
        prefix = key + "/"
        for stale in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[stale]

    def _absolute(self, path: PathLike) -> Path:
        candidate = Path(path).expanduser()
        return candidate if candidate.is_absolute() else self.root / candidate

    def _relative_key(self, canonical_path: str) -> str | None:
        try:
            return Path(canonical_path).relative_to(self._canonical_root).as_posix()
        except ValueError:
            return None
