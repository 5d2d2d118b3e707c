"""Tests for core/control/mapping.py — mapping table from config dicts.

Covers:
- Discrete entries (triple and wildcard pair), ``mqtt: [topic, payload]``
- Range entries with defaults and explicit ranges
- Split ``mqtt_topic`` / ``mqtt_payload`` keys
- Invalid entries skipped without stopping the rest
- Configuration order is kept
"""

from __future__ import annotations

import logging

import pytest

from core.control.errors import ControlConfigError
from core.control.mapping import parse_mapping_entry, parse_mappings
from core.control.types import DiscreteMapping, RangeMapping


class TestParseDiscrete:
    def test_keys_entry(self) -> None:
        entry = parse_mapping_entry({"midi": [176, 7, 127], "keys": "ctrl+shift a"})
        assert entry == DiscreteMapping(midi=(176, 7, 127), keys="ctrl+shift a")

    def test_mqtt_pair(self) -> None:
        entry = parse_mapping_entry({"midi": [144, 36], "mqtt": ["home/light", "toggle"]})
        assert isinstance(entry, DiscreteMapping)
        assert entry.mqtt_topic == "home/light"
        assert entry.mqtt_payload == "toggle"

    def test_split_mqtt_fields(self) -> None:
        entry = parse_mapping_entry(
            {"midi": [144, 36, 1], "mqtt_topic": "a/b", "mqtt_payload": 1}
        )
        assert entry.mqtt_topic == "a/b"
        assert entry.mqtt_payload == "1"


class TestParseRange:
    def test_defaults(self) -> None:
        entry = parse_mapping_entry(
            {"midi": [176, 10], "type": "range", "mqtt": ["t", "{{payload}}"]}
        )
        assert isinstance(entry, RangeMapping)
        assert (entry.min, entry.max, entry.to_min, entry.to_max) == (0, 127, 0, 10)
        assert entry.mqtt_payload_template == "{{payload}}"

    def test_explicit_range(self) -> None:
        entry = parse_mapping_entry(
            {
                "midi": [176, 10],
                "type": "range",
                "min": 20,
                "max": 100,
                "to_min": 0,
                "to_max": 100,
                "mqtt_topic": "t",
                "mqtt_payload_template": "v={{payload}}",
            }
        )
        assert (entry.min, entry.max, entry.to_min, entry.to_max) == (20, 100, 0, 100)
        assert entry.mqtt_payload_template == "v={{payload}}"

    def test_min_equals_max_accepted_at_load(self) -> None:
        entry = parse_mapping_entry(
            {"midi": [176, 10], "type": "range", "min": 5, "max": 5, "mqtt": ["t", "x"]}
        )
        assert entry.min == entry.max == 5

    def test_range_needs_two_values(self) -> None:
        with pytest.raises(ControlConfigError, match="exactly 2"):
            parse_mapping_entry({"midi": [176, 10, 1], "type": "range", "mqtt": ["t", "x"]})


class TestParseErrors:
    @pytest.mark.parametrize(
        "raw, message",
        [
            ({"keys": "a"}, "missing 'midi'"),
            ({"midi": [], "keys": "a"}, "non-empty"),
            ({"midi": "176,7", "keys": "a"}, "non-empty"),
            ({"midi": [176]}, "2 or 3"),
            ({"midi": [176, 7, 300], "keys": "a"}, r"\[0, 255\]"),
            ({"midi": [176, 7]}, "neither"),
            ({"midi": [176, 7], "keys": "hyper a"}, "unknown modifier"),
            ({"midi": [176, 7], "mqtt": ["only-topic"]}, r"\[topic, payload\]"),
            ({"midi": [176, 7], "mqtt": ["home/light", None]}, "must not be null"),
            ({"midi": [176, 10], "type": "range", "mqtt": [None, "p"]}, "must not be null"),
            ({"midi": [176, 10], "type": "range", "min": "x", "mqtt": ["t", "p"]}, "number"),
        ],
    )
    def test_invalid_entry(self, raw: dict, message: str) -> None:
        with pytest.raises(ControlConfigError, match=message):
            parse_mapping_entry(raw)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ControlConfigError, match="must be a mapping"):
            parse_mapping_entry(["midi", 1])  # type: ignore[arg-type]


class TestParseMappings:
    def test_splits_and_keeps_order(self) -> None:
        table = parse_mappings(
            [
                {"midi": [176, 7, 127], "keys": "a"},
                {"midi": [176, 10], "type": "range", "mqtt": ["t", "{{payload}}"]},
                {"midi": [176, 7], "keys": "b"},
            ]
        )
        assert [m.keys for m in table.discrete] == ["a", "b"]
        assert len(table.ranges) == 1
        assert len(table) == 3

    def test_invalid_entries_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="core.control.mapping"):
            table = parse_mappings(
                [
                    {"midi": [176, 7, 127], "keys": "a"},
                    {"keys": "b"},
                    {"midi": [176, 8, 127], "keys": "c"},
                ]
            )
        assert [m.keys for m in table.discrete] == ["a", "c"]
        assert "Skipping hotkey #1" in caplog.text

    def test_none_is_empty_table(self) -> None:
        assert len(parse_mappings(None)) == 0
