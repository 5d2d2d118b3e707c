"""ingestion/actuators.py — Keystroke and MQTT side effects of resolved actions.

The engine only produces ``ResolvedAction`` values. This module turns them
into the real world:

    ResolvedAction(keys="ctrl+shift a")         → KeystrokeActuator (pynput)
    ResolvedAction(mqtt_topic=t, mqtt_payload=p) → MqttPublisher (paho-mqtt)

Both may fire for one action. Actuation is best-effort: ``ActionDispatcher``
logs and counts a failing actuator and carries on, so a missing display or a
dead broker never stops MIDI processing.

Key names
─────────
Configurations written for the Node bridge use robotjs key names
(``audio_vol_up``, ``escape``, ``pageup``). They are translated to
``pynput.keyboard.Key`` members; any other multi-character name is looked up
on ``Key`` directly (``f5``, ``space``, ``media_next``) and a single
character is typed as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt

from core.config import MqttSettings
from core.control.hotkeys import parse_hotkey
from core.control.types import ResolvedAction
from infrastructure.metrics import record_action, record_actuator_error
from infrastructure.retry import with_retry

logger = logging.getLogger(__name__)

KEY_NAME_ALIASES: dict[str, str] = {
    "audio_vol_up": "media_volume_up",
    "audio_vol_down": "media_volume_down",
    "audio_mute": "media_volume_mute",
    "audio_play": "media_play_pause",
    "audio_pause": "media_play_pause",
    "audio_next": "media_next",
    "audio_prev": "media_previous",
    "escape": "esc",
    "pageup": "page_up",
    "pagedown": "page_down",
    "printscreen": "print_screen",
    "return": "enter",
    "command": "cmd",
    "control": "ctrl",
}

_CONNECT_ATTEMPTS = 3
_RECONNECT_MAX_SECONDS = 30


# ---------------------------------------------------------------------------
# Keystrokes
# ---------------------------------------------------------------------------


class KeystrokeActuator:
    """Presses hotkeys with pynput's keyboard controller.

    pynput is imported on construction: it connects to the display server at
    import time, and a bridge running publish-only mappings should not need
    one.

    Args:
        controller: Optional pre-built ``pynput.keyboard.Controller``.
    """

    def __init__(self, controller: Any | None = None) -> None:
        from pynput.keyboard import Controller, Key

        self._key = Key
        self._controller = controller if controller is not None else Controller()

    def resolve_key(self, name: str) -> Any:
        """Map a key name to a pynput key or a literal character.

        Raises:
            ValueError: If the name is neither a character nor a known key.
        """
        if len(name) == 1:
            return name
        attr = KEY_NAME_ALIASES.get(name, name)
        key = getattr(self._key, attr, None)
        if key is None:
            raise ValueError(f"Unknown key name: {name!r}")
        return key

    def press(self, keys: str) -> None:
        """Hold the modifiers of ``keys`` and tap its key."""
        modifiers, name = parse_hotkey(keys)
        key = self.resolve_key(name)
        held = [self.resolve_key(m) for m in modifiers]
        with self._controller.pressed(*held):
            self._controller.tap(key)


# ---------------------------------------------------------------------------
# MQTT
# ---------------------------------------------------------------------------


class MqttPublisher:
    """paho-mqtt client for publish actions.

    ``on_connected`` is called on paho's network thread after every
    successful (re)connect; the runner uses it to reopen the MIDI port.

    Args:
        settings: Broker connection settings.
        on_connected: Optional callback with no arguments.
        client: Optional pre-built ``paho.mqtt.client.Client`` (tests).
    """

    def __init__(
        self,
        settings: MqttSettings,
        on_connected: Callable[[], None] | None = None,
        client: Any | None = None,
    ) -> None:
        self.settings = settings
        self.on_connected = on_connected
        self.connected = False
        self._client = client if client is not None else mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        if settings.username:
            self._client.username_pw_set(settings.username, settings.password)

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code == 0:
            self.connected = True
            logger.info("Connected to MQTT broker %s:%d", self.settings.host, self.settings.port)
            if self.on_connected is not None:
                self.on_connected()
        else:
            logger.error("Failed to connect to MQTT broker: %s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self.connected = False
        if reason_code != 0:
            logger.warning("Unexpected disconnection from MQTT broker: %s", reason_code)
        else:
            logger.info("Disconnected from MQTT broker")

    def connect(self) -> None:
        """Connect and start paho's network loop.

        A few blocking attempts are made first. If the broker still does not
        answer, the connection is handed to paho's loop, which keeps retrying
        in the background; ``on_connected`` fires once the broker is up.
        """
        self._client.reconnect_delay_set(min_delay=1, max_delay=_RECONNECT_MAX_SECONDS)

        @with_retry(max_attempts=_CONNECT_ATTEMPTS, base_seconds=1.0, exceptions=(OSError,))
        def _connect_once() -> None:
            self._client.connect(
                self.settings.host,
                self.settings.port,
                keepalive=self.settings.keepalive,
            )

        try:
            _connect_once()
        except RuntimeError as exc:
            logger.warning(
                "MQTT broker %s:%d unreachable (%s), retrying in background",
                self.settings.host,
                self.settings.port,
                exc.__cause__ or exc,
            )
            self._client.connect_async(
                self.settings.host,
                self.settings.port,
                keepalive=self.settings.keepalive,
            )
        self._client.loop_start()
        logger.info("MQTT client connection started")

    def disconnect(self) -> None:
        self._client.loop_stop()
        self._client.disconnect()
        self.connected = False
        logger.info("MQTT client disconnected")

    def publish(self, topic: str, payload: str | None) -> bool:
        """Publish one message.

        Returns:
            True if paho accepted the message for sending.
        """
        if not self.connected:
            logger.error("MQTT client not connected, dropping %s", topic)
            return False
        result = self._client.publish(topic, payload)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Failed to publish to %s: %s", topic, result.rc)
            return False
        return True


# ---------------------------------------------------------------------------
# Action boundary
# ---------------------------------------------------------------------------


class ActionDispatcher:
    """Routes a ``ResolvedAction`` to the actuators it names.

    Either actuator may be ``None`` (not configured); actions that need it
    are logged and skipped.
    """

    def __init__(
        self,
        keystrokes: KeystrokeActuator | None = None,
        publisher: MqttPublisher | None = None,
    ) -> None:
        self.keystrokes = keystrokes
        self.publisher = publisher

    def dispatch(self, action: ResolvedAction, kind: str = "discrete") -> None:
        """Perform ``action``. Never raises.

        Args:
            action: What to do.
            kind: ``"discrete"`` or ``"range"``, for metrics.
        """
        if action.is_empty:
            return
        record_action(kind)

        if action.keys:
            logger.info("press %s", action.keys)
            if self.keystrokes is None:
                logger.warning("No keyboard actuator, skipping %s", action.keys)
            else:
                try:
                    self.keystrokes.press(action.keys)
                except Exception as exc:  # pynput backends raise their own errors
                    logger.error("Keystroke %r failed: %s", action.keys, exc)
                    record_actuator_error("keystroke")

        if action.mqtt_topic:
            logger.info("send mqtt: %s %s", action.mqtt_topic, action.mqtt_payload)
            if self.publisher is None:
                logger.warning("No MQTT broker configured, skipping %s", action.mqtt_topic)
                return
            try:
                ok = self.publisher.publish(action.mqtt_topic, action.mqtt_payload)
            except Exception as exc:
                logger.error("Publish to %s failed: %s", action.mqtt_topic, exc)
                ok = False
            if not ok:
                record_actuator_error("mqtt")
