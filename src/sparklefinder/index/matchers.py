"""Content matchers used by ad-hoc search.

Two tiers: ripgrep when the ``rg`` binary is available, and a pure-Python line
scanner otherwise. Both answer the same question, "which files under this
directory contain this text, ignoring case", and both stop at the same depth and
file-size limits.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Collection, List

from sparklefinder.utils.files import iter_files

LOGGER = logging.getLogger(__name__)

MAX_SEARCH_DEPTH = 5
MAX_MATCHES = 20
MAX_FILE_SIZE = 50 * 1024 * 1024


class MatcherUnavailable(RuntimeError):
    """The fast matcher cannot serve this request."""


class RipgrepMatcher:
    """Fast tier backed by the ``rg`` executable."""

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or shutil.which("rg")

    @property
    def available(self) -> bool:
        return self.executable is not None

    def build_command(self, directory: Path, keyword: str, extensions: Collection[str]) -> List[str]:
        if self.executable is None:
            raise MatcherUnavailable("ripgrep is not installed")
        command = [
            self.executable,
            "--ignore-case",
            "--fixed-strings",
            "--files-with-matches",
            "--no-messages",
            "--no-ignore",
            "--max-count", "1",
            "--max-depth", str(MAX_SEARCH_DEPTH),
            "--max-filesize", "50M",
        ]
        for ext in sorted(extensions):
            command.extend(["--iglob", f"*{ext}"])
        command.extend(["--", keyword, str(directory)])
        return command

    async def find_files(
        self,
        directory: Path,
        keyword: str,
        extensions: Collection[str],
        *,
        max_results: int = MAX_MATCHES,
    ) -> List[Path]:
        command = self.build_command(directory, keyword, extensions)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise MatcherUnavailable(f"Cannot run ripgrep: {exc}") from exc

        stdout, _ = await process.communicate()
        # rg exits 1 when nothing matched and 2 on errors.
        if process.returncode not in (0, 1):
            raise MatcherUnavailable(f"ripgrep exited with status {process.returncode}")

        lines = [line.strip() for line in stdout.decode("utf-8", "replace").splitlines()]
        return [Path(line) for line in sorted(filter(None, lines))][:max_results]


class LineScanMatcher:
    """Slow tier: reads candidate files line by line in a worker thread."""

    async def find_files(
        self,
        directory: Path,
        keyword: str,
        extensions: Collection[str],
        *,
        max_results: int = MAX_MATCHES,
    ) -> List[Path]:
        return await asyncio.to_thread(self._scan, directory, keyword, extensions, max_results)

    def _scan(
        self, directory: Path, keyword: str, extensions: Collection[str], max_results: int
    ) -> List[Path]:
        needle = keyword.lower()
        matches: List[Path] = []
        for path in iter_files(directory, max_depth=MAX_SEARCH_DEPTH, extensions=extensions or None):
            if len(matches) >= max_results:
                break
            # Same hidden-file rule as ripgrep's defaults
            if path.name.startswith("."):
                continue
            try:
                if path.stat().st_size > MAX_FILE_SIZE:
                    continue
                if self._contains(path, needle):
                    matches.append(path)
            except OSError as exc:
                LOGGER.debug("Skipping %s: %s", path, exc)
        return matches

    @staticmethod
    def _contains(path: Path, needle: str) -> bool:
        with path.open("r", encoding="utf-8", errors="ignore") as handle:
            return any(needle in line.lower() for line in handle)


class TieredMatcher:
    """Prefers the fast matcher and falls back to the line scanner."""

    def __init__(
        self,
        fast: RipgrepMatcher | None = None,
        slow: LineScanMatcher | None = None,
    ) -> None:
        self.fast = fast if fast is not None else RipgrepMatcher()
        self.slow = slow or LineScanMatcher()

    async def find_files(
        self,
        directory: Path,
        keyword: str,
        extensions: Collection[str],
        *,
        max_results: int = MAX_MATCHES,
    ) -> List[Path]:
        if self.fast.available:
            try:
                return await self.fast.find_files(
                    directory, keyword, extensions, max_results=max_results
                )
            except MatcherUnavailable as exc:
                LOGGER.debug("Falling back to line scan: %s", exc)
        return await self.slow.find_files(directory, keyword, extensions, max_results=max_results)
