"""ingestion/bridge.py — Assemble and run every piece of the bridge.

``Bridge`` builds the engine, port controller, actuators, hot-plug monitor
and runner from one ``BridgeConfig`` and wires their callbacks:

    port callback      → runner.submit_sample
    hot-plug callback  → runner.submit_attach
    broker connect     → runner.request_reopen("broker")

Optional parts are skipped when not needed: no keyboard actuator without
any ``keys`` mapping, no publisher without an MQTT host, no hot-plug
monitor when ``midi.hotplug`` is false.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from core.control.engine import ControlEngine
from ingestion.actuators import ActionDispatcher, KeystrokeActuator, MqttPublisher
from ingestion.config_loader import BridgeConfig
from ingestion.hotplug import UsbHotplugMonitor
from ingestion.midi_port import InputPortController
from ingestion.runner import REASON_BROKER, EngineRunner

logger = logging.getLogger(__name__)


def _needs_keyboard(config: BridgeConfig) -> bool:
    mappings = config.mappings
    return any(m.keys for m in mappings.discrete) or any(m.keys for m in mappings.ranges)


class Bridge:
    """The running bridge.

    Args:
        config: Loaded configuration.
        clock: Monotonic clock shared by engine and runner.
        keystrokes: Keyboard actuator override. Built from pynput when
            omitted and any mapping presses keys.
        publisher: MQTT publisher override. Built from ``config.mqtt`` when
            omitted and a host is configured.
        hotplug: Hot-plug monitor override. Built when omitted and
            ``config.hotplug`` is true.
    """

    def __init__(
        self,
        config: BridgeConfig,
        clock: Callable[[], float] = time.monotonic,
        keystrokes: KeystrokeActuator | None = None,
        publisher: MqttPublisher | None = None,
        hotplug: UsbHotplugMonitor | None = None,
    ) -> None:
        self.config = config
        engine = ControlEngine(config.engine, config.mappings, started_at=clock())
        self.port = InputPortController(
            self._on_sample,
            port_name=config.engine.port_name,
            port_index=config.engine.port_index,
        )

        if keystrokes is None and _needs_keyboard(config):
            keystrokes = self._build_keystrokes()
        if publisher is None and config.mqtt.enabled:
            publisher = MqttPublisher(config.mqtt)
        if publisher is not None:
            publisher.on_connected = self._on_broker_connected
        self.publisher = publisher

        self.dispatcher = ActionDispatcher(keystrokes=keystrokes, publisher=publisher)
        self.runner = EngineRunner(engine, self.port, self.dispatcher, clock=clock)

        if hotplug is None and config.hotplug:
            hotplug = UsbHotplugMonitor(self.runner.submit_attach)
        self.hotplug = hotplug

    @staticmethod
    def _build_keystrokes() -> KeystrokeActuator | None:
        try:
            return KeystrokeActuator()
        except Exception as exc:  # pynput fails to import without a display
            logger.error("Keyboard actuator unavailable, key mappings disabled: %s", exc)
            return None

    def _on_sample(self, delta_time: float, sample: tuple[int, ...]) -> None:
        self.runner.submit_sample(delta_time, sample)

    def _on_broker_connected(self) -> None:
        self.runner.request_reopen(REASON_BROKER)

    def start(self) -> None:
        """Start the worker, then the broker connection and hot-plug polling."""
        self.runner.start()
        if self.publisher is not None:
            self.publisher.connect()
        if self.hotplug is not None:
            self.hotplug.start()

    def stop(self) -> None:
        if self.hotplug is not None:
            self.hotplug.stop()
        self.runner.stop()
        if self.publisher is not None:
            self.publisher.disconnect()
