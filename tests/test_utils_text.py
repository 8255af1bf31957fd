"""Tests for text utility functions."""

from __future__ import annotations

from sparklefinder.utils.text import (
    extract_keywords,
    normalize_whitespace,
    summarize,
    tokenize,
)


class TestTokenize:
    """Test tokenize function."""

    def test_lowercases_and_splits(self) -> None:
        """Should lowercase and split on any whitespace."""
        assert tokenize("Tax  Return\t2023") == ["tax", "return", "2023"]

    def test_empty(self) -> None:
        assert tokenize("   ") == []


class TestExtractKeywords:
    """Test extract_keywords function."""

    def test_drops_stop_words(self) -> None:
        """Should remove stop words."""
        assert extract_keywords("find the report about taxes") == ["find", "report", "taxes"]

    def test_drops_short_words(self) -> None:
        """Should remove words shorter than three characters."""
        assert extract_keywords("my q3 budget") == ["budget"]

    def test_custom_min_length(self) -> None:
        assert extract_keywords("my q3 budget", min_length=2) == ["my", "q3", "budget"]

    def test_only_stop_words(self) -> None:
        assert extract_keywords("what is the") == []


class TestNormalizeWhitespace:
    """Test normalize_whitespace function."""

    def test_normalize_strips_lines(self) -> None:
        """Should strip leading/trailing whitespace from lines."""
        assert normalize_whitespace(["  line1  ", "  line2  "]) == "line1\nline2"

    def test_normalize_removes_empty_lines(self) -> None:
        """Should remove empty lines."""
        assert normalize_whitespace(["line1", "", "   ", "line2"]) == "line1\nline2"

    def test_normalize_empty_input(self) -> None:
        assert normalize_whitespace([]) == ""


class TestSummarize:
    """Test summarize function."""

    def test_first_three_lines(self) -> None:
        """Should join the first three non-blank lines with spaces."""
        content = "Title\n\nFirst point\nSecond point\nThird point\n"

        assert summarize(content) == "Title First point Second point"

    def test_truncates_long_summary(self) -> None:
        """Should cut the summary at 200 characters."""
        assert summarize("x" * 500) == "x" * 200

    def test_short_content(self) -> None:
        assert summarize("just one line") == "just one line"

    def test_blank_content(self) -> None:
        assert summarize("\n\n  \n") == ""
