"""core/control/history.py — Per-control observation history.

Remembers, for every control ever seen, when it was last observed and when
it was observed before that. A control seen twice within the noise window
is "corroborated"; a single tick is indistinguishable from electrical noise.

Timestamps are seconds from whatever clock the caller uses (the runner uses
``time.monotonic``). The tracker never reads a clock itself.
"""

from __future__ import annotations

from core.control.types import HistoryEntry, RawSample, control_key

DEFAULT_NOISE_WINDOW_SECONDS: float = 1.0


class HistoryTracker:
    """Rolling two-timestamp memory keyed by ``ControlKey``.

    Args:
        noise_window_seconds: Gap after which an observation counts as a
            fresh first sighting (default: 1.0).
    """

    def __init__(self, noise_window_seconds: float = DEFAULT_NOISE_WINDOW_SECONDS) -> None:
        self._window = noise_window_seconds
        self._entries: dict[str, HistoryEntry] = {}

    def record(self, sample: RawSample, now: float) -> HistoryEntry:
        """Record one observation of ``sample`` at ``now``.

        Returns:
            The updated entry.
        """
        key = control_key(sample)
        entry = self._entries.get(key)
        if entry is None:
            entry = HistoryEntry(key=key, last_sample=sample, time_of_last=now)
            self._entries[key] = entry
            return entry

        if now - entry.time_of_last > self._window:
            entry.time_of_previous = None
            entry.time_of_last = now
            entry.last_sample = sample
            return entry

        entry.time_of_previous = entry.time_of_last
        entry.time_of_last = now
        entry.last_sample = sample
        return entry

    def lookup(self, key: str) -> HistoryEntry | None:
        """Return the entry for ``key`` or ``None`` if never seen."""
        return self._entries.get(key)

    def is_corroborated(self, key: str) -> bool:
        """True if ``key`` was seen at least twice within the noise window."""
        entry = self._entries.get(key)
        return entry is not None and entry.time_of_previous is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
