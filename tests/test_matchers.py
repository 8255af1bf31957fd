"""Tests for the content matchers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sparklefinder.index.matchers import (
    LineScanMatcher,
    MatcherUnavailable,
    RipgrepMatcher,
    TieredMatcher,
)


def fake_process(stdout: bytes, returncode: int) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, b""))
    process.returncode = returncode
    return process


class TestRipgrepMatcher:
    """Test the ripgrep tier."""

    def test_unavailable_without_binary(self) -> None:
        with patch("sparklefinder.index.matchers.shutil.which", return_value=None):
            matcher = RipgrepMatcher()

        assert not matcher.available
        with pytest.raises(MatcherUnavailable):
            matcher.build_command(Path("/s"), "budget", {".txt"})

    def test_build_command(self) -> None:
        """Should search literally, case-insensitively and within limits."""
        matcher = RipgrepMatcher("/usr/bin/rg")

        command = matcher.build_command(Path("/s"), "q3 budget", {".txt", ".md"})

        assert command[0] == "/usr/bin/rg"
        assert "--ignore-case" in command
        assert "--fixed-strings" in command
        assert "--files-with-matches" in command
        assert command[command.index("--max-depth") + 1] == "5"
        assert command[command.index("--max-filesize") + 1] == "50M"
        assert command[-4:] == ["*.txt", "--", "q3 budget", "/s"]
        assert ["--iglob", "*.md"] == command[command.index("*.md") - 1 : command.index("*.md") + 1]

    def test_keyword_starting_with_dash_is_not_a_flag(self) -> None:
        command = RipgrepMatcher("rg").build_command(Path("/s"), "--files", set())

        assert command[-3:] == ["--", "--files", "/s"]

    @pytest.mark.asyncio
    async def test_find_files_parses_output(self) -> None:
        process = fake_process(b"/s/b.txt\n/s/a.txt\n\n", 0)

        with patch(
            "sparklefinder.index.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            paths = await RipgrepMatcher("rg").find_files(Path("/s"), "budget", {".txt"})

        assert paths == [Path("/s/a.txt"), Path("/s/b.txt")]

    @pytest.mark.asyncio
    async def test_no_matches(self) -> None:
        with patch(
            "sparklefinder.index.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=fake_process(b"", 1)),
        ):
            assert await RipgrepMatcher("rg").find_files(Path("/s"), "budget", {".txt"}) == []

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        with patch(
            "sparklefinder.index.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=fake_process(b"", 2)),
        ):
            with pytest.raises(MatcherUnavailable):
                await RipgrepMatcher("rg").find_files(Path("/s"), "budget", {".txt"})

    @pytest.mark.asyncio
    async def test_missing_executable(self) -> None:
        with patch(
            "sparklefinder.index.matchers.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("rg")),
        ):
            with pytest.raises(MatcherUnavailable):
                await RipgrepMatcher("rg").find_files(Path("/s"), "budget", {".txt"})

    @pytest.mark.asyncio
    async def test_results_are_capped(self) -> None:
        output = b"".join(f"/s/{n:02d}.txt\n".encode() for n in range(30))

        with patch(
            "sparklefinder.index.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=fake_process(output, 0)),
        ):
            paths = await RipgrepMatcher("rg").find_files(Path("/s"), "x", {".txt"}, max_results=5)

        assert len(paths) == 5


class TestLineScanMatcher:
    """Test the pure-Python tier."""

    @pytest.mark.asyncio
    async def test_case_insensitive_match(self, tmp_path: Path) -> None:
        (tmp_path / "notes.txt").write_text("first line\nThe BUDGET is final\n")
        (tmp_path / "other.txt").write_text("nothing here")

        paths = await LineScanMatcher().find_files(tmp_path, "budget", {".txt"})

        assert paths == [tmp_path / "notes.txt"]

    @pytest.mark.asyncio
    async def test_extension_filter(self, tmp_path: Path) -> None:
        (tmp_path / "notes.md").write_text("budget")
        (tmp_path / "data.bin").write_text("budget")

        paths = await LineScanMatcher().find_files(tmp_path, "budget", {".md"})

        assert paths == [tmp_path / "notes.md"]

    @pytest.mark.asyncio
    async def test_depth_limit(self, tmp_path: Path) -> None:
        deep = tmp_path / "1" / "2" / "3" / "4" / "5"
        deep.mkdir(parents=True)
        (deep / "deep.txt").write_text("budget")
        (tmp_path / "1" / "2" / "3" / "4" / "shallow.txt").write_text("budget")

        paths = await LineScanMatcher().find_files(tmp_path, "budget", {".txt"})

        assert [path.name for path in paths] == ["shallow.txt"]

    @pytest.mark.asyncio
    async def test_hidden_files_and_directories_skipped(self, tmp_path: Path) -> None:
        """Hidden entries are left out, as ripgrep does by default."""
        (tmp_path / ".notes.txt").write_text("budget")
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "draft.txt").write_text("budget")
        (tmp_path / "plan.txt").write_text("budget")

        paths = await LineScanMatcher().find_files(tmp_path, "budget", {".txt"})

        assert paths == [tmp_path / "plan.txt"]

    @pytest.mark.asyncio
    async def test_max_results(self, tmp_path: Path) -> None:
        for number in range(5):
            (tmp_path / f"{number}.txt").write_text("budget")

        paths = await LineScanMatcher().find_files(tmp_path, "budget", {".txt"}, max_results=2)

        assert len(paths) == 2


class TestTieredMatcher:
    """Test fallback between tiers."""

    @pytest.mark.asyncio
    async def test_prefers_fast_tier(self) -> None:
        fast = MagicMock(available=True)
        fast.find_files = AsyncMock(return_value=[Path("/s/a.txt")])
        slow = MagicMock()
        slow.find_files = AsyncMock()

        paths = await TieredMatcher(fast, slow).find_files(Path("/s"), "x", {".txt"})

        assert paths == [Path("/s/a.txt")]
        slow.find_files.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_when_fast_tier_fails(self) -> None:
        fast = MagicMock(available=True)
        fast.find_files = AsyncMock(side_effect=MatcherUnavailable("boom"))
        slow = MagicMock()
        slow.find_files = AsyncMock(return_value=[Path("/s/b.txt")])

        paths = await TieredMatcher(fast, slow).find_files(Path("/s"), "x", {".txt"})

        assert paths == [Path("/s/b.txt")]

    @pytest.mark.asyncio
    async def test_skips_unavailable_fast_tier(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text("Needle")
        fast = RipgrepMatcher("rg")
        fast.executable = None

        paths = await TieredMatcher(fast).find_files(tmp_path, "needle", {".txt"})

        assert paths == [tmp_path / "a.txt"]
