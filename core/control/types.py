"""core/control/types.py — Value objects for the control normalization engine.

Configuration records are frozen dataclasses. The two pieces of runtime state
(``HistoryEntry`` and ``ConnectivityState``) are plain mutable dataclasses and
are owned by exactly one component each. Pure module, no I/O.

Glossary:
    RawSample     One hardware message as a tuple of ints ``(status, data1, data2)``.
                  Shorter tuples are legal (clock / active sensing are 1 byte).
    ControlKey    ``"status-data1"`` — identity of one physical control.
    Discrete      Mapping matched on an exact triple, fires immediately.
    Range         Mapping matched on ``(status, data1)``, value rescaled and debounced.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.control.errors import ControlConfigError

RawSample = tuple[int, ...]
"""One hardware message. ``sample[0]`` is the status byte."""


PAYLOAD_TOKEN = "{{payload}}"
"""Placeholder replaced by the scaled value in range payload templates."""


def control_key(sample: RawSample) -> str:
    """Return the ``"status-data1"`` identity of a sample.

    A sample without ``data1`` yields ``"status-"`` so it still gets a stable,
    distinct key.

    Example:
        >>> control_key((176, 10, 64))
        '176-10'
    """
    status = sample[0] if len(sample) > 0 else ""
    data1 = sample[1] if len(sample) > 1 else ""
    return f"{status}-{data1}"


# ---------------------------------------------------------------------------
# Mapping entries (read-only configuration)
# ---------------------------------------------------------------------------


def _validate_bytes(midi: tuple[int, ...], name: str) -> None:
    for value in midi:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ControlConfigError(f"{name}: midi values must be integers, got {midi!r}")
        if not 0 <= value <= 255:
            raise ControlConfigError(f"{name}: midi values must be in [0, 255], got {midi!r}")


@dataclass(frozen=True)
class DiscreteMapping:
    """A rule that fires one action when an exact message arrives.

    Attributes:
        midi: ``(status, data1)`` or ``(status, data1, data2)``. When ``data2``
            is omitted it acts as a wildcard.
        keys: Hotkey string such as ``"ctrl+shift a"``.
        mqtt_topic: Topic to publish to.
        mqtt_payload: Payload to publish.
    """

    midi: tuple[int, ...]
    keys: str | None = None
    mqtt_topic: str | None = None
    mqtt_payload: str | None = None

    def __post_init__(self) -> None:
        """Validate match pattern."""
        if len(self.midi) not in (2, 3):
            raise ControlConfigError(
                f"discrete mapping needs 2 or 3 midi values, got {self.midi!r}"
            )
        _validate_bytes(self.midi, "discrete mapping")

    def matches(self, sample: RawSample) -> bool:
        """True if every specified byte equals the sample's byte."""
        if len(sample) < len(self.midi):
            return False
        return all(sample[i] == self.midi[i] for i in range(len(self.midi)))


@dataclass(frozen=True)
class RangeMapping:
    """A rule that rescales the third byte of a continuous control.

    ``min``/``max`` describe the raw range, ``to_min``/``to_max`` the output
    range. ``min == max`` is accepted here and rejected when scaling, so one
    bad entry cannot stop the rest of the table from loading.
    """

    midi: tuple[int, int]
    min: float = 0
    max: float = 127
    to_min: float = 0
    to_max: float = 10
    keys: str | None = None
    mqtt_topic: str | None = None
    mqtt_payload_template: str | None = None

    def __post_init__(self) -> None:
        """Validate match pattern."""
        if len(self.midi) != 2:
            raise ControlConfigError(
                f"range mapping needs exactly 2 midi values (status, data1), got {self.midi!r}"
            )
        _validate_bytes(self.midi, "range mapping")

    def matches(self, sample: RawSample) -> bool:
        """True if status and data1 equal the sample's and a value byte is present."""
        return len(sample) >= 3 and sample[0] == self.midi[0] and sample[1] == self.midi[1]


MappingEntry = DiscreteMapping | RangeMapping


@dataclass(frozen=True)
class MappingTable:
    """Ordered mapping configuration split by variant.

    Order inside each tuple is configuration order; first match wins.
    """

    discrete: tuple[DiscreteMapping, ...] = ()
    ranges: tuple[RangeMapping, ...] = ()

    def __len__(self) -> int:
        return len(self.discrete) + len(self.ranges)


# ---------------------------------------------------------------------------
# Action boundary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedAction:
    """What the engine asks the outside world to do.

    Any combination of fields may be set; an action with no fields is empty
    and is never dispatched.
    """

    keys: str | None = None
    mqtt_topic: str | None = None
    mqtt_payload: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when neither a keystroke nor a publish is requested."""
        return not self.keys and not self.mqtt_topic


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------


@dataclass
class HistoryEntry:
    """Last two observation times of one control.

    Mutated only by ``HistoryTracker``.
    """

    key: str
    last_sample: RawSample
    time_of_last: float
    time_of_previous: float | None = None


@dataclass
class ConnectivityState:
    """Liveness of the hardware link.

    ``last_accepted_at`` is ``None`` until the first sample is accepted.
    """

    last_accepted_at: float | None = None
    port_open: bool = False
    paused: bool = False


@dataclass(frozen=True)
class AttachEvent:
    """A USB device appeared on the bus."""

    vendor_id: int
    product_id: int
    name: str = ""
