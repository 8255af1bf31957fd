"""Tests for recent-file tracking."""

from __future__ import annotations

from pathlib import Path

import pytest

from sparklefinder.activity.recent import RecentActivityTracker, time_ago
from sparklefinder.models import EventKind, WatchEvent

NOW = 1_700_000_000.0


class Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (5, "just now"),
        (-3, "just now"),
        (150, "2 minutes ago"),
        (2 * 3600 + 10, "2 hours ago"),
        (3 * 86400, "3 days ago"),
    ],
)
def test_time_ago(seconds: float, expected: str) -> None:
    assert time_ago(seconds) == expected


class TestRecentActivityTracker:
    """Test RecentActivityTracker."""

    def test_record(self) -> None:
        tracker = RecentActivityTracker(clock=Clock(NOW))

        recent = tracker.record(Path("/dl/report.pdf"))

        assert recent.seen_at == NOW
        assert recent.source == "download"
        assert len(tracker) == 1

    def test_handle_events(self) -> None:
        tracker = RecentActivityTracker(clock=Clock(NOW))

        tracker.handle_event(WatchEvent(EventKind.ADDED, Path("/dl/a.pdf")))
        tracker.handle_event(WatchEvent(EventKind.CHANGED, Path("/dl/b.pdf")))
        assert len(tracker) == 1

        tracker.handle_event(WatchEvent(EventKind.REMOVED, Path("/dl/a.pdf")))
        assert len(tracker) == 0

    def test_prune(self) -> None:
        clock = Clock(NOW)
        tracker = RecentActivityTracker(max_age=3600, clock=clock)
        tracker.record(Path("/dl/old.pdf"))
        clock.now += 1800
        tracker.record(Path("/dl/new.pdf"))
        clock.now += 2000

        assert tracker.prune() == 1
        assert len(tracker) == 1

    def test_find_relevant(self) -> None:
        """Matching recent files are scored and described."""
        clock = Clock(NOW)
        tracker = RecentActivityTracker(clock=clock)
        tracker.record(Path("/dl/report.pdf"))
        tracker.record(Path("/dl/photo.jpg"))
        clock.now += 10 * 60

        results = tracker.find_relevant("report", 10)

        assert [r.path.name for r in results] == ["report.pdf", "photo.jpg"]
        assert results[0].relevance == pytest.approx(0.7)
        assert results[0].summary == "Recent download (10 minutes ago)"
        assert results[0].source == "recent"

    def test_find_relevant_drops_expired_files(self) -> None:
        clock = Clock(NOW)
        tracker = RecentActivityTracker(clock=clock)
        tracker.record(Path("/dl/report.pdf"))
        clock.now += 2 * 86400

        assert tracker.find_relevant("report", 10) == []
        assert len(tracker) == 0

    def test_find_relevant_skips_zero_scores(self) -> None:
        """Files past every age bonus with no name match are left out."""
        clock = Clock(NOW)
        tracker = RecentActivityTracker(max_age=3 * 86400, clock=clock)
        tracker.record(Path("/dl/photo.jpg"))
        clock.now += 2 * 86400

        assert tracker.find_relevant("report", 10) == []

    def test_limit(self) -> None:
        tracker = RecentActivityTracker(clock=Clock(NOW))
        for number in range(4):
            tracker.record(Path(f"/dl/file{number}.txt"))

        assert len(tracker.find_relevant("file", 2)) == 2
        assert tracker.find_relevant("file", 0) == []
