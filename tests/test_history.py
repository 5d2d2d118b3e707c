"""Tests for core/control/history.py — per-control observation history.

Covers:
- First sighting creates an entry without a previous time
- Second sighting within the window corroborates the control
- A gap longer than the window resets corroboration
- Keys are per (status, data1); data2 does not split controls
"""

from __future__ import annotations

from core.control.history import HistoryTracker
from core.control.types import control_key

T0 = 1000.0


class TestControlKey:
    def test_status_and_data1(self) -> None:
        assert control_key((176, 10, 64)) == "176-10"

    def test_data2_ignored(self) -> None:
        assert control_key((176, 10, 1)) == control_key((176, 10, 127))

    def test_single_byte_sample(self) -> None:
        assert control_key((248,)) == "248-"


class TestHistoryRecord:
    """record() bookkeeping."""

    def test_first_sighting(self) -> None:
        history = HistoryTracker()
        entry = history.record((176, 10, 64), T0)
        assert entry.key == "176-10"
        assert entry.time_of_last == T0
        assert entry.time_of_previous is None
        assert not history.is_corroborated("176-10")

    def test_second_sighting_within_window(self) -> None:
        history = HistoryTracker(noise_window_seconds=1.0)
        history.record((176, 10, 64), T0)
        entry = history.record((176, 10, 65), T0 + 0.3)
        assert entry.time_of_previous == T0
        assert entry.time_of_last == T0 + 0.3
        assert entry.last_sample == (176, 10, 65)
        assert history.is_corroborated("176-10")

    def test_gap_longer_than_window_resets(self) -> None:
        history = HistoryTracker(noise_window_seconds=1.0)
        history.record((176, 10, 64), T0)
        history.record((176, 10, 64), T0 + 0.2)
        entry = history.record((176, 10, 64), T0 + 5.0)
        assert entry.time_of_previous is None
        assert entry.time_of_last == T0 + 5.0
        assert not history.is_corroborated("176-10")

    def test_gap_equal_to_window_still_corroborates(self) -> None:
        history = HistoryTracker(noise_window_seconds=1.0)
        history.record((176, 10, 64), T0)
        history.record((176, 10, 64), T0 + 1.0)
        assert history.is_corroborated("176-10")

    def test_controls_tracked_independently(self) -> None:
        history = HistoryTracker()
        history.record((176, 10, 64), T0)
        history.record((176, 11, 64), T0 + 0.1)
        assert len(history) == 2
        assert not history.is_corroborated("176-10")
        assert not history.is_corroborated("176-11")


class TestHistoryLookup:
    def test_unknown_key(self) -> None:
        history = HistoryTracker()
        assert history.lookup("176-10") is None
        assert "176-10" not in history
        assert not history.is_corroborated("176-10")

    def test_known_key(self) -> None:
        history = HistoryTracker()
        history.record((144, 36, 100), T0)
        assert "144-36" in history
        assert history.lookup("144-36").last_sample == (144, 36, 100)
