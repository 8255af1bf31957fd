"""Content sampling for text-like files.

Only a bounded prefix is ever read, so large files cost the same as small ones
and binary formats are never loaded at all.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

from sparklefinder.utils.text import summarize

LOGGER = logging.getLogger(__name__)

CONTENT_SAMPLE_CHARS = 5000
TEXT_EXTENSIONS = frozenset({".txt", ".md", ".json", ".csv", ".log"})


class ContentSample(NamedTuple):
    content: str | None
    summary: str | None


def is_text_file(path: Path) -> bool:
    return path.suffix.lower() in TEXT_EXTENSIONS


def read_prefix(path: Path, *, max_chars: int = CONTENT_SAMPLE_CHARS) -> str:
    """Read at most ``max_chars`` characters of UTF-8 text."""
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        return handle.read(max_chars)


def load_sample(path: Path, *, max_chars: int = CONTENT_SAMPLE_CHARS) -> ContentSample:
    """Content prefix and summary for whitelisted text files, empty otherwise.

    Read errors are logged and yield an empty sample; the file is still indexed
    by name.
    """
    if not is_text_file(path):
        return ContentSample(None, None)
    try:
        content = read_prefix(path, max_chars=max_chars)
    except OSError as exc:
        LOGGER.error("Error reading %s: %s", path, exc)
        return ContentSample(None, None)
    return ContentSample(content, summarize(content))
