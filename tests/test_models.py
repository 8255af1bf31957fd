"""Tests for data models."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import numpy as np
import pytest

from sparklefinder.models import (
    EventKind,
    FileMetadata,
    FileType,
    SearchOptions,
    SearchResult,
    WatchEvent,
)


class TestFileType:
    """Test FileType.from_extension."""

    @pytest.mark.parametrize(
        ("ext", "expected"),
        [
            (".pdf", FileType.DOCUMENT),
            (".DOCX", FileType.DOCUMENT),
            (".md", FileType.TEXT),
            (".jpeg", FileType.IMAGE),
            (".m4a", FileType.AUDIO),
            (".mov", FileType.VIDEO),
            (".json", FileType.DATA),
            (".xlsx", FileType.SPREADSHEET),
            (".exe", FileType.OTHER),
            ("", FileType.OTHER),
        ],
    )
    def test_from_extension(self, ext: str, expected: FileType) -> None:
        assert FileType.from_extension(ext) is expected

    def test_value_is_string(self) -> None:
        assert FileType.SPREADSHEET == "spreadsheet"


class TestFileMetadata:
    """Test FileMetadata dataclass."""

    def test_optional_fields_default_to_none(self) -> None:
        metadata = FileMetadata(
            path="a/b.jpg",
            name="b.jpg",
            size=3,
            modified=0.0,
            file_type=FileType.IMAGE,
            embedding=np.zeros(2),
        )

        assert metadata.content is None
        assert metadata.summary is None


class TestSearchModels:
    """Test SearchResult and SearchOptions."""

    def test_search_result_defaults(self) -> None:
        result = SearchResult(path=Path("/s/a.txt"), relevance=0.5)

        assert result.source == "index"
        assert result.summary is None
        assert result.matched_content is None

    def test_search_options_defaults(self) -> None:
        options = SearchOptions(query="budget")

        assert options.locations == ()
        assert options.file_types == ()
        assert options.limit == 50


class TestWatchEvent:
    """Test WatchEvent."""

    def test_equality_and_immutability(self) -> None:
        event = WatchEvent(EventKind.ADDED, Path("/s/a.txt"))

        assert event == WatchEvent(EventKind.ADDED, Path("/s/a.txt"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.path = Path("/s/b.txt")  # type: ignore[misc]
