"""Utility helpers for working with files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Collection, Iterator

LOGGER = logging.getLogger(__name__)

WELCOME_FILENAME = "README.txt"
WELCOME_TEXT = """Welcome to your Sparkle folder!

This is the folder your assistant is allowed to read.

How to use:
1. Drop any files here that you want the assistant to find
2. Ask about them naturally:
   - "What files are in my Sparkle folder?"
   - "Find my tax documents"
   - "Show me the PDF I just added"

Important:
- Only files in THIS folder are accessible
- Files are indexed automatically when added
- You can organize with subfolders
"""


def iter_files(
    root: Path,
    *,
    max_depth: int | None = None,
    extensions: Collection[str] | None = None,
    skip_hidden_dirs: bool = True,
) -> Iterator[Path]:
    """Yield regular files below ``root`` without following symlinks.

    ``max_depth`` counts directory levels the way ``find -maxdepth`` does: files
    directly inside ``root`` are at depth 1.
    """
    yield from _walk(Path(root), 1, max_depth, extensions, skip_hidden_dirs)


def _walk(
    directory: Path,
    depth: int,
    max_depth: int | None,
    extensions: Collection[str] | None,
    skip_hidden_dirs: bool,
) -> Iterator[Path]:
    if max_depth is not None and depth > max_depth:
        return
    try:
        with os.scandir(directory) as scanner:
            entries = sorted(scanner, key=lambda entry: entry.name)
    except OSError as exc:
        LOGGER.warning("Cannot list %s: %s", directory, exc)
        return

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            if skip_hidden_dirs and entry.name.startswith("."):
                continue
            yield from _walk(Path(entry.path), depth + 1, max_depth, extensions, skip_hidden_dirs)
        elif entry.is_file(follow_symlinks=False):
            if extensions is None or os.path.splitext(entry.name)[1].lower() in extensions:
                yield Path(entry.path)


def normalize_extensions(file_types: Collection[str]) -> set[str]:
    """Turn ``pdf``, ``.PDF`` and ``*.pdf`` into ``.pdf``."""
    normalized = set()
    for item in file_types:
        ext = item.strip().lower().lstrip("*")
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return normalized


def ensure_sandbox_root(root: Path) -> bool:
    """Create ``root`` if needed and drop the welcome file once.

    Returns True when the welcome file was written by this call.
    """
    root.mkdir(parents=True, exist_ok=True)
    welcome = root / WELCOME_FILENAME
    try:
        with welcome.open("x", encoding="utf-8") as handle:
            handle.write(WELCOME_TEXT)
    except FileExistsError:
        return False
    LOGGER.info("Created Sparkle folder at %s", root)
    return True
