"""core/control/mapping.py — Build the mapping table from plain config dicts.

Accepted entry shape (YAML shown)::

    - midi: [176, 7, 127]          # discrete: exact triple (data2 optional)
      keys: "ctrl+shift a"
      mqtt: ["home/light", "on"]   # or mqtt_topic / mqtt_payload

    - midi: [176, 10]              # range: (status, data1)
      type: range
      min: 0
      max: 127
      to_min: 0
      to_max: 10
      mqtt: ["home/volume", "val={{payload}}"]

A broken entry never stops the table from loading: it is logged with its
position and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from core.control.errors import ControlConfigError
from core.control.hotkeys import parse_hotkey
from core.control.types import DiscreteMapping, MappingEntry, MappingTable, RangeMapping

logger = logging.getLogger(__name__)

RANGE_TYPE = "range"


def _midi_tuple(raw: Any) -> tuple[int, ...]:
    if not isinstance(raw, list | tuple) or not raw:
        raise ControlConfigError(f"'midi' must be a non-empty list of ints, got {raw!r}")
    return tuple(raw)


def _mqtt_fields(raw: Mapping[str, Any], payload_field: str) -> tuple[str | None, str | None]:
    """Return ``(topic, payload)`` from either ``mqtt: [t, p]`` or split keys."""
    pair = raw.get("mqtt")
    if pair is not None:
        if not isinstance(pair, list | tuple) or len(pair) != 2:
            raise ControlConfigError(f"'mqtt' must be [topic, payload], got {pair!r}")
        if pair[0] is None or pair[1] is None:
            raise ControlConfigError(f"'mqtt' topic and payload must not be null, got {pair!r}")
        return str(pair[0]), str(pair[1])
    topic = raw.get("mqtt_topic")
    payload = raw.get(payload_field, raw.get("mqtt_payload"))
    return (
        str(topic) if topic is not None else None,
        str(payload) if payload is not None else None,
    )


def _number(raw: Mapping[str, Any], field: str, default: float) -> float:
    value = raw.get(field)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ControlConfigError(f"'{field}' must be a number, got {value!r}")
    return value


def parse_mapping_entry(raw: Mapping[str, Any]) -> MappingEntry:
    """Convert one config dict into a mapping entry.

    Raises:
        ControlConfigError: If the entry is malformed or requests no action.
    """
    if not isinstance(raw, Mapping):
        raise ControlConfigError(f"mapping entry must be a mapping, got {type(raw).__name__}")
    if "midi" not in raw:
        raise ControlConfigError("mapping entry is missing 'midi'")

    midi = _midi_tuple(raw["midi"])
    keys = raw.get("keys") or None
    if keys is not None:
        keys = str(keys)
        parse_hotkey(keys)

    if raw.get("type") == RANGE_TYPE:
        topic, template = _mqtt_fields(raw, "mqtt_payload_template")
        entry: MappingEntry = RangeMapping(
            midi=midi,  # type: ignore[arg-type]
            min=_number(raw, "min", 0),
            max=_number(raw, "max", 127),
            to_min=_number(raw, "to_min", 0),
            to_max=_number(raw, "to_max", 10),
            keys=keys,
            mqtt_topic=topic,
            mqtt_payload_template=template,
        )
    else:
        topic, payload = _mqtt_fields(raw, "mqtt_payload")
        entry = DiscreteMapping(midi=midi, keys=keys, mqtt_topic=topic, mqtt_payload=payload)

    if not entry.keys and not entry.mqtt_topic:
        raise ControlConfigError(f"mapping {midi!r} has neither 'keys' nor an mqtt topic")
    return entry


def parse_mappings(entries: Iterable[Mapping[str, Any]] | None) -> MappingTable:
    """Build a ``MappingTable`` keeping configuration order.

    Invalid entries are logged and skipped.
    """
    discrete: list[DiscreteMapping] = []
    ranges: list[RangeMapping] = []
    for index, raw in enumerate(entries or ()):
        try:
            entry = parse_mapping_entry(raw)
        except ControlConfigError as exc:
            logger.error("Skipping hotkey #%d: %s", index, exc)
            continue
        if isinstance(entry, RangeMapping):
            ranges.append(entry)
        else:
            discrete.append(entry)

    table = MappingTable(discrete=tuple(discrete), ranges=tuple(ranges))
    logger.info("Loaded %d discrete and %d range mappings", len(discrete), len(ranges))
    return table
