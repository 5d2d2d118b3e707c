"""
Configuration dataclasses for the control bridge.

These immutable config objects are built once at startup (see
``ingestion/config_loader.py``) and handed to the engine and adapters. They
never change while the process runs.
"""

from dataclasses import dataclass, field
from typing import Literal

DebounceScope = Literal["per_control", "global"]

# Timing clock (0xF8) and active sensing (0xFE) status bytes.
DEFAULT_NOISE_CODES: frozenset[int] = frozenset({248, 254})

VALID_DEBOUNCE_SCOPES: frozenset[str] = frozenset({"per_control", "global"})


@dataclass(frozen=True)
class DeviceIdentity:
    """
    USB identity of the MIDI device, used to recognise hot-plug events.

    Attributes:
        vendor_id: USB vendor id (``idVendor``). ``None`` when unknown.
        product_id: USB product id (``idProduct``). ``None`` when unknown.
    """

    vendor_id: int | None = None
    product_id: int | None = None

    @property
    def is_configured(self) -> bool:
        """True when both ids are known (zero is not a valid id)."""
        return bool(self.vendor_id) and bool(self.product_id)

    def matches(self, vendor_id: int, product_id: int) -> bool:
        """True if this identity is configured and equals the given pair."""
        return self.is_configured and (self.vendor_id, self.product_id) == (vendor_id, product_id)


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the input normalization engine.

    Attributes:
        port_name: Exact MIDI input port name to prefer.
        port_index: Fallback port index when ``port_name`` is not found.
        device: USB identity for reconnect-on-attach.
        noise_codes: Status bytes discarded before classification.
        watchdog_seconds: Inactivity after which the port is reopened, also
            the watchdog check interval. Defaults to 600.
        noise_window_seconds: Two observations of a control closer than this
            corroborate each other. Defaults to 1.0.
        debounce_seconds: Quiet period of range controls. Defaults to 0.5.
        attach_delay_seconds: Wait after a hot-plug attach before reopening,
            so the OS can finish enumeration. Defaults to 0.5.
        debounce_scope: ``"per_control"`` (one timer per control) or
            ``"global"`` (one shared timer).

    Example:
        >>> config = EngineConfig(port_name="Reface DX", watchdog_seconds=60)
    """

    port_name: str | None = None
    port_index: int | None = None
    device: DeviceIdentity = field(default_factory=DeviceIdentity)
    noise_codes: frozenset[int] = DEFAULT_NOISE_CODES
    watchdog_seconds: float = 600.0
    noise_window_seconds: float = 1.0
    debounce_seconds: float = 0.5
    attach_delay_seconds: float = 0.5
    debounce_scope: DebounceScope = "per_control"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.port_index is not None and self.port_index < 0:
            raise ValueError(f"port_index must be non-negative, got {self.port_index}")
        for name in (
            "watchdog_seconds",
            "noise_window_seconds",
            "debounce_seconds",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.attach_delay_seconds < 0:
            raise ValueError(
                f"attach_delay_seconds must be non-negative, got {self.attach_delay_seconds}"
            )
        if self.debounce_scope not in VALID_DEBOUNCE_SCOPES:
            raise ValueError(
                f"Unknown debounce_scope {self.debounce_scope!r}, "
                f"valid options: {sorted(VALID_DEBOUNCE_SCOPES)}"
            )
        bad_codes = [c for c in self.noise_codes if not 0 <= c <= 255]
        if bad_codes:
            raise ValueError(f"noise_codes must be bytes in [0, 255], got {sorted(bad_codes)}")


@dataclass(frozen=True)
class MqttSettings:
    """
    Connection settings for the publish actuator.

    Attributes:
        host: Broker host. ``None`` disables publishing.
        port: Broker port. Defaults to 1883.
        username: Optional username.
        password: Optional password.
        client_id: MQTT client id. Defaults to ``"midi-control-bridge"``.
        keepalive: Keepalive in seconds. Defaults to 60.
    """

    host: str | None = None
    port: int = 1883
    username: str | None = None
    password: str | None = None
    client_id: str = "midi-control-bridge"
    keepalive: int = 60

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in [1, 65535], got {self.port}")
        if self.keepalive <= 0:
            raise ValueError(f"keepalive must be positive, got {self.keepalive}")

    @property
    def enabled(self) -> bool:
        """True when a broker host is configured."""
        return bool(self.host)


# Pre-defined configuration

DEFAULT_ENGINE_CONFIG = EngineConfig()
"""Default engine configuration: no port selected, 600 s watchdog, 0.5 s debounce."""
