"""core/control/classifier.py — Decide what a raw message means.

Pipeline for one sample::

    status in noise codes? ── yes ──→ NOISE (no history, no action)
            │ no
            ▼
    history.record(sample)
            │
            ├── first matching Discrete entry ──→ ResolvedAction (immediate)
            └── first matching Range entry ─────→ coalescer.schedule(...)

The two scans are independent: one sample may fire a discrete action *and*
schedule a range debounce. Unmatched samples are dropped silently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from core.control.debounce import DebounceCoalescer
from core.control.history import HistoryTracker
from core.control.types import MappingTable, RawSample, ResolvedAction, control_key

logger = logging.getLogger(__name__)


class SampleOutcome(Enum):
    """What happened to an inbound sample."""

    ACCEPTED = "accepted"
    NOISE = "noise"
    PAUSED = "paused"
    EMPTY = "empty"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one sample."""

    outcome: SampleOutcome
    action: ResolvedAction | None = None
    range_scheduled: bool = False


class MessageClassifier:
    """Match samples against the mapping table.

    Args:
        mappings: Ordered mapping configuration.
        history: Shared history tracker (updated for every non-noise sample).
        coalescer: Receives range matches.
        noise_codes: Status bytes to discard before anything else.
    """

    def __init__(
        self,
        mappings: MappingTable,
        history: HistoryTracker,
        coalescer: DebounceCoalescer,
        noise_codes: frozenset[int] = frozenset(),
    ) -> None:
        self._mappings = mappings
        self._history = history
        self._coalescer = coalescer
        self._noise_codes = noise_codes

    def classify(self, sample: RawSample, now: float) -> Classification:
        """Classify ``sample`` observed at ``now``."""
        if not sample:
            return Classification(SampleOutcome.EMPTY)
        if sample[0] in self._noise_codes:
            logger.debug("Noise code %d discarded", sample[0])
            return Classification(SampleOutcome.NOISE)

        self._history.record(sample, now)

        action: ResolvedAction | None = None
        for entry in self._mappings.discrete:
            if entry.matches(sample):
                action = ResolvedAction(
                    keys=entry.keys,
                    mqtt_topic=entry.mqtt_topic,
                    mqtt_payload=entry.mqtt_payload,
                )
                break

        scheduled = False
        for rng in self._mappings.ranges:
            if rng.matches(sample):
                self._coalescer.schedule(control_key(sample), sample[2], rng, now)
                scheduled = True
                break

        return Classification(SampleOutcome.ACCEPTED, action=action, range_scheduled=scheduled)
