"""
YAML configuration loader for the bridge.

One file describes the whole bridge::

    midi:
      port_name: "reface DX"
      port_index: 0                 # fallback when the name is not found
      device: { vid: 1177, pid: 4096 }
      noise_codes: [248, 254]
      watchdog_seconds: 600
      noise_window_seconds: 1.0
      debounce_seconds: 0.5
      attach_delay_seconds: 0.5
      debounce_scope: per_control   # or: global
      hotplug: true
      hotkeys:
        - midi: [176, 7, 127]
          keys: "ctrl+shift a"
        - midi: [176, 10]
          type: range
          mqtt: ["home/volume", "{{payload}}"]

    mqtt:
      host: localhost
      port: 1883

Broker credentials and the port name may also come from the environment
(or a ``.env`` file): ``MQTT_HOST``, ``MQTT_PORT``, ``MQTT_USERNAME``,
``MQTT_PASSWORD``, ``MIDI_PORT_NAME``. Environment values win over the file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.config import DEFAULT_NOISE_CODES, DeviceIdentity, EngineConfig, MqttSettings
from core.control.mapping import parse_mappings
from core.control.types import MappingTable

logger = logging.getLogger(__name__)

_ENGINE_TIMINGS = (
    "watchdog_seconds",
    "noise_window_seconds",
    "debounce_seconds",
    "attach_delay_seconds",
)


@dataclass(frozen=True)
class BridgeConfig:
    """Everything the bridge needs at startup."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    mqtt: MqttSettings = field(default_factory=MqttSettings)
    mappings: MappingTable = field(default_factory=MappingTable)
    hotplug: bool = True


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' section must be a mapping, got {type(value).__name__}")
    return value


def _optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _flag(value: Any, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def _device(raw: Any) -> DeviceIdentity:
    if raw is None:
        return DeviceIdentity()
    if not isinstance(raw, Mapping):
        raise ValueError(f"'device' must be {{vid, pid}}, got {raw!r}")
    return DeviceIdentity(
        vendor_id=_optional_int(raw.get("vid"), "device.vid"),
        product_id=_optional_int(raw.get("pid"), "device.pid"),
    )


def build_engine_config(midi: Mapping[str, Any], environ: Mapping[str, str]) -> EngineConfig:
    """Build an ``EngineConfig`` from the ``midi`` section plus environment."""
    kwargs: dict[str, Any] = {
        name: float(midi[name]) for name in _ENGINE_TIMINGS if midi.get(name) is not None
    }
    noise_codes = midi.get("noise_codes")
    return EngineConfig(
        port_name=environ.get("MIDI_PORT_NAME") or midi.get("port_name"),
        port_index=_optional_int(midi.get("port_index"), "port_index"),
        device=_device(midi.get("device")),
        noise_codes=(
            DEFAULT_NOISE_CODES if noise_codes is None else frozenset(int(c) for c in noise_codes)
        ),
        debounce_scope=midi.get("debounce_scope", "per_control"),
        **kwargs,
    )


def build_mqtt_settings(mqtt: Mapping[str, Any], environ: Mapping[str, str]) -> MqttSettings:
    """Build ``MqttSettings`` from the ``mqtt`` section plus environment."""
    port = environ.get("MQTT_PORT") or mqtt.get("port") or 1883
    return MqttSettings(
        host=environ.get("MQTT_HOST") or mqtt.get("host"),
        port=_optional_int(port, "mqtt.port") or 1883,
        username=environ.get("MQTT_USERNAME") or mqtt.get("username"),
        password=environ.get("MQTT_PASSWORD") or mqtt.get("password"),
        client_id=mqtt.get("client_id", "midi-control-bridge"),
        keepalive=int(mqtt.get("keepalive", 60)),
    )


def parse_config(data: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> BridgeConfig:
    """Build a ``BridgeConfig`` from an already-parsed document.

    Args:
        data: Parsed YAML (top-level mapping).
        environ: Environment to read overrides from. Defaults to ``os.environ``.

    Raises:
        ValueError: On an invalid ``midi`` or ``mqtt`` section. Invalid
            hotkey entries are logged and skipped instead.
    """
    env = os.environ if environ is None else environ
    midi = _section(data, "midi")
    mqtt = _section(data, "mqtt")
    return BridgeConfig(
        engine=build_engine_config(midi, env),
        mqtt=build_mqtt_settings(mqtt, env),
        mappings=parse_mappings(midi.get("hotkeys")),
        hotplug=_flag(midi.get("hotplug"), "hotplug", default=True),
    )


def load_config(path: str | Path | None = None) -> BridgeConfig:
    """Load the bridge configuration.

    Reads ``.env`` into the environment first, then the YAML file at
    ``path``. Without a path only the environment is used.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the document is not a mapping or a section is invalid.
    """
    load_dotenv()
    data: Any = {}
    if path is not None:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"{path}: top level must be a mapping")
        logger.info("Loaded config from %s", path)
    return parse_config(data)
