"""Ad-hoc pattern and content search over sandboxed directories.

Unlike :class:`~sparklefinder.index.directory.DirectoryIndex`, nothing here is
cached: every call walks the requested locations. Phase one scores file names;
phase two greps file contents, and only runs when phase one came up short.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from sparklefinder.errors import AccessDenied, SandboxError
from sparklefinder.index.matchers import MAX_MATCHES, MAX_SEARCH_DEPTH, TieredMatcher
from sparklefinder.models import SearchOptions, SearchResult
from sparklefinder.security.guard import PathGuard
from sparklefinder.utils.files import iter_files, normalize_extensions
from sparklefinder.utils.text import extract_keywords

LOGGER = logging.getLogger(__name__)

NAME_MATCH_SCORE = 0.6
EXACT_MATCH_BONUS = 0.4
CONTENT_MATCH_SCORE = 0.7
EXACT_MATCH_EXTENSIONS = (".pdf", ".doc", ".docx")
TEXT_SEARCH_EXTENSIONS = frozenset({".txt", ".md", ".json", ".csv", ".log", ".js", ".ts", ".py"})

# (trigger words, implied extensions)
QUERY_TYPE_HINTS = (
    (("pdf",), (".pdf",)),
    (("document",), (".doc", ".docx", ".pdf")),
    (("image", "photo"), (".jpg", ".jpeg", ".png", ".gif")),
    (("video",), (".mp4", ".mov", ".avi")),
    (("audio", "podcast"), (".mp3", ".wav", ".m4a")),
)


@dataclass(slots=True)
class ParsedQuery:
    keywords: List[str] = field(default_factory=list)
    file_types: set[str] = field(default_factory=set)


def parse_query(query: str) -> ParsedQuery:
    """Split ``query`` into keywords and the file types it implies."""
    lowered = query.lower()
    file_types: set[str] = set()
    for triggers, extensions in QUERY_TYPE_HINTS:
        if any(trigger in lowered for trigger in triggers):
            file_types.update(extensions)
    return ParsedQuery(keywords=extract_keywords(query), file_types=file_types)


def name_relevance(filename: str, keywords: Sequence[str]) -> float:
    name = filename.lower()
    relevance = NAME_MATCH_SCORE * sum(1 for keyword in keywords if keyword in name)
    for keyword in keywords:
        if name == keyword or any(name == keyword + ext for ext in EXACT_MATCH_EXTENSIONS):
            relevance += EXACT_MATCH_BONUS
    return min(relevance, 1.0)


def should_search_content(file_types: Iterable[str]) -> bool:
    """Content search runs for unfiltered queries or when a text type was asked for."""
    types = set(file_types)
    return not types or bool(types & TEXT_SEARCH_EXTENSIONS)


def merge_results(results: Iterable[SearchResult], limit: int) -> List[SearchResult]:
    """Keep the best hit per path, sort by relevance (then path), truncate."""
    best: Dict[Path, SearchResult] = {}
    for result in results:
        current = best.get(result.path)
        if current is None or result.relevance > current.relevance:
            best[result.path] = result
    ordered = sorted(best.values(), key=lambda result: (-result.relevance, str(result.path)))
    return ordered[: max(limit, 0)]


class AdHocSearcher:
    """Two-phase search over caller-supplied sandbox locations."""

    def __init__(self, guard: PathGuard, matcher: TieredMatcher | None = None) -> None:
        self.guard = guard
        self.matcher = matcher or TieredMatcher()

    async def search(self, options: SearchOptions) -> List[SearchResult]:
        """Search every location in ``options``.

        Locations outside the sandbox raise :class:`AccessDenied`; missing or
        unreadable ones are skipped with a warning.
        """
        limit = options.limit
        if limit <= 0:
            return []

        parsed = parse_query(options.query)
        file_types = parsed.file_types | normalize_extensions(options.file_types)

        results: List[SearchResult] = []
        for location in options.locations:
            try:
                directory = await asyncio.to_thread(self.guard.validate_search_path, location)
            except AccessDenied:
                raise
            except (SandboxError, OSError) as exc:
                LOGGER.warning("Skipping search location %s: %s", location, exc)
                continue

            results.extend(await self._search_directory(directory, parsed.keywords, file_types, limit))
            results = merge_results(results, limit)
            if len(results) >= limit:
                break

        return merge_results(results, limit)

    async def _search_directory(
        self, directory: Path, keywords: List[str], file_types: set[str], limit: int
    ) -> List[SearchResult]:
        found = await self.find_by_name(directory, keywords, file_types, limit)
        if len(found) < limit and should_search_content(file_types):
            found.extend(await self.search_content(directory, keywords, file_types, limit - len(found)))
        return found

    async def find_by_name(
        self, directory: Path, keywords: List[str], file_types: set[str], limit: int
    ) -> List[SearchResult]:
        """Phase one: score file names below ``directory``."""
        paths = await asyncio.to_thread(
            lambda: list(
                iter_files(
                    directory,
                    max_depth=MAX_SEARCH_DEPTH,
                    extensions=file_types or None,
                    skip_hidden_dirs=False,
                )
            )
        )
        results = []
        for path in paths:
            relevance = name_relevance(path.name, keywords)
            if relevance > 0 and self.guard.contains(path):
                results.append(SearchResult(path=path, relevance=relevance, source="name"))
        return merge_results(results, limit)

    async def search_content(
        self, directory: Path, keywords: List[str], file_types: set[str], limit: int
    ) -> List[SearchResult]:
        """Phase two: case-insensitive substring search in text-like files."""
        extensions = (file_types & TEXT_SEARCH_EXTENSIONS) or TEXT_SEARCH_EXTENSIONS
        results: List[SearchResult] = []
        for keyword in keywords:
            if len(results) >= limit:
                break
            paths = await self.matcher.find_files(directory, keyword, extensions, max_results=MAX_MATCHES)
            results.extend(
                SearchResult(
                    path=path,
                    relevance=CONTENT_MATCH_SCORE,
                    matched_content=f'Contains "{keyword}"',
                    source="content",
                )
                for path in paths
                if self.guard.contains(path)
            )
        return merge_results(results, limit)
