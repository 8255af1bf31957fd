"""Core SparkleFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal, Sequence

import numpy as np


class FileType(str, Enum):
    DOCUMENT = "document"
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DATA = "data"
    SPREADSHEET = "spreadsheet"
    OTHER = "other"

    @classmethod
    def from_extension(cls, ext: str) -> "FileType":
        return _EXTENSION_TYPES.get(ext.lower(), cls.OTHER)


_EXTENSION_TYPES = {
    ".pdf": FileType.DOCUMENT,
    ".doc": FileType.DOCUMENT,
    ".docx": FileType.DOCUMENT,
    ".txt": FileType.TEXT,
    ".md": FileType.TEXT,
    ".log": FileType.TEXT,
    ".jpg": FileType.IMAGE,
    ".jpeg": FileType.IMAGE,
    ".png": FileType.IMAGE,
    ".gif": FileType.IMAGE,
    ".mp3": FileType.AUDIO,
    ".wav": FileType.AUDIO,
    ".m4a": FileType.AUDIO,
    ".mp4": FileType.VIDEO,
    ".mov": FileType.VIDEO,
    ".avi": FileType.VIDEO,
    ".csv": FileType.DATA,
    ".json": FileType.DATA,
    ".xlsx": FileType.SPREADSHEET,
    ".xls": FileType.SPREADSHEET,
}


class IndexState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SCANNING = "scanning"
    READY = "ready"


class EventKind(str, Enum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(slots=True)
class FileMetadata:
    """Indexed view of a single file under the sandbox root."""

    path: str
    name: str
    size: int
    modified: float
    file_type: FileType
    embedding: np.ndarray
    content: str | None = None
    summary: str | None = None


@dataclass(slots=True)
class SearchResult:
    path: Path
    relevance: float
    summary: str | None = None
    matched_content: str | None = None
    source: Literal["index", "recent", "name", "content"] = "index"


@dataclass(slots=True)
class SearchOptions:
    query: str
    locations: Sequence[Path] = field(default_factory=tuple)
    file_types: Sequence[str] = field(default_factory=tuple)
    limit: int = 50


@dataclass(slots=True, frozen=True)
class WatchEvent:
    """A change notification for one file below a watched root."""

    kind: EventKind
    path: Path


@dataclass(slots=True)
class RecentFile:
    path: Path
    seen_at: float
    source: Literal["download", "clipboard", "created"] = "download"
