"""Tests for core/control/classifier.py — what a raw message means.

Covers:
- Noise codes are dropped before history
- Discrete: exact triple, two-byte wildcard, first match wins
- Range: schedules the coalescer with data2, needs a value byte
- One sample may fire a discrete action and schedule a range
- Unmatched and malformed samples still update history
"""

from __future__ import annotations

from core.control.classifier import MessageClassifier, SampleOutcome
from core.control.debounce import DebounceCoalescer
from core.control.history import HistoryTracker
from core.control.types import DiscreteMapping, MappingTable, RangeMapping, ResolvedAction

T0 = 1000.0


def _classifier(
    discrete: tuple[DiscreteMapping, ...] = (),
    ranges: tuple[RangeMapping, ...] = (),
    noise_codes: frozenset[int] = frozenset({248, 254}),
) -> tuple[MessageClassifier, HistoryTracker, DebounceCoalescer]:
    history = HistoryTracker()
    coalescer = DebounceCoalescer()
    classifier = MessageClassifier(
        MappingTable(discrete=discrete, ranges=ranges), history, coalescer, noise_codes
    )
    return classifier, history, coalescer


# ---------------------------------------------------------------------------
# Noise
# ---------------------------------------------------------------------------


class TestNoise:
    def test_clock_dropped(self) -> None:
        classifier, history, _ = _classifier()
        result = classifier.classify((248,), T0)
        assert result.outcome is SampleOutcome.NOISE
        assert result.action is None
        assert len(history) == 0

    def test_active_sensing_dropped(self) -> None:
        classifier, history, _ = _classifier()
        assert classifier.classify((254,), T0).outcome is SampleOutcome.NOISE
        assert len(history) == 0

    def test_custom_noise_codes(self) -> None:
        classifier, history, _ = _classifier(noise_codes=frozenset({208}))
        assert classifier.classify((208, 40), T0).outcome is SampleOutcome.NOISE
        assert classifier.classify((248,), T0).outcome is SampleOutcome.ACCEPTED
        assert len(history) == 1

    def test_empty_sample(self) -> None:
        classifier, history, _ = _classifier()
        assert classifier.classify((), T0).outcome is SampleOutcome.EMPTY
        assert len(history) == 0


# ---------------------------------------------------------------------------
# Discrete
# ---------------------------------------------------------------------------


class TestDiscrete:
    def test_exact_triple(self) -> None:
        mapping = DiscreteMapping(midi=(176, 7, 127), keys="ctrl+shift a")
        classifier, _, _ = _classifier(discrete=(mapping,))
        result = classifier.classify((176, 7, 127), T0)
        assert result.outcome is SampleOutcome.ACCEPTED
        assert result.action == ResolvedAction(keys="ctrl+shift a")

    def test_different_data2_no_match(self) -> None:
        mapping = DiscreteMapping(midi=(176, 7, 127), keys="ctrl+shift a")
        classifier, _, _ = _classifier(discrete=(mapping,))
        result = classifier.classify((176, 7, 0), T0)
        assert result.outcome is SampleOutcome.ACCEPTED
        assert result.action is None

    def test_two_byte_pattern_matches_any_data2(self) -> None:
        mapping = DiscreteMapping(midi=(144, 36), mqtt_topic="pad", mqtt_payload="hit")
        classifier, _, _ = _classifier(discrete=(mapping,))
        for velocity in (1, 64, 127):
            action = classifier.classify((144, 36, velocity), T0).action
            assert action == ResolvedAction(mqtt_topic="pad", mqtt_payload="hit")

    def test_first_match_wins(self) -> None:
        first = DiscreteMapping(midi=(176, 7, 127), keys="a")
        second = DiscreteMapping(midi=(176, 7), keys="b")
        classifier, _, _ = _classifier(discrete=(first, second))
        assert classifier.classify((176, 7, 127), T0).action.keys == "a"
        assert classifier.classify((176, 7, 1), T0).action.keys == "b"

    def test_both_keys_and_mqtt(self) -> None:
        mapping = DiscreteMapping(midi=(176, 7, 127), keys="f5", mqtt_topic="x", mqtt_payload="1")
        classifier, _, _ = _classifier(discrete=(mapping,))
        action = classifier.classify((176, 7, 127), T0).action
        assert action == ResolvedAction(keys="f5", mqtt_topic="x", mqtt_payload="1")

    def test_short_sample_never_matches_triple(self) -> None:
        mapping = DiscreteMapping(midi=(192, 5, 0), keys="a")
        classifier, history, _ = _classifier(discrete=(mapping,))
        result = classifier.classify((192, 5), T0)
        assert result.outcome is SampleOutcome.ACCEPTED
        assert result.action is None
        assert "192-5" in history


# ---------------------------------------------------------------------------
# Range
# ---------------------------------------------------------------------------


class TestRange:
    def test_schedules_with_data2(self) -> None:
        mapping = RangeMapping(midi=(176, 10), mqtt_topic="t")
        classifier, _, coalescer = _classifier(ranges=(mapping,))
        result = classifier.classify((176, 10, 64), T0)
        assert result.range_scheduled
        assert result.action is None
        (pending,) = coalescer.pending()
        assert pending.key == "176-10"
        assert pending.raw_value == 64
        assert pending.mapping is mapping

    def test_two_byte_sample_not_scheduled(self) -> None:
        mapping = RangeMapping(midi=(192, 5), mqtt_topic="t")
        classifier, history, coalescer = _classifier(ranges=(mapping,))
        result = classifier.classify((192, 5), T0)
        assert not result.range_scheduled
        assert len(coalescer) == 0
        assert "192-5" in history

    def test_discrete_and_range_together(self) -> None:
        discrete = DiscreteMapping(midi=(176, 10, 127), keys="audio_vol_up")
        rng = RangeMapping(midi=(176, 10), mqtt_topic="t")
        classifier, _, coalescer = _classifier(discrete=(discrete,), ranges=(rng,))
        result = classifier.classify((176, 10, 127), T0)
        assert result.action == ResolvedAction(keys="audio_vol_up")
        assert result.range_scheduled
        assert len(coalescer) == 1


class TestUnmatched:
    def test_recorded_but_no_action(self) -> None:
        classifier, history, coalescer = _classifier()
        result = classifier.classify((128, 60, 0), T0)
        assert result.outcome is SampleOutcome.ACCEPTED
        assert result.action is None
        assert not result.range_scheduled
        assert "128-60" in history
        assert len(coalescer) == 0
