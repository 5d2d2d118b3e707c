"""core/control/debounce.py — Trailing-edge coalescing of range controls.

A knob sweep produces dozens of messages per second. The coalescer keeps
only the most recent value per slot and releases it once the slot has been
quiet for ``quiet_seconds``:

    t=0.00  schedule(v=10)   ─┐
    t=0.10  schedule(v=40)    │  timer restarts on every call
    t=0.20  schedule(v=90)   ─┘
    t=0.70  fire(v=90)          only the last value survives

Slots:
    ``per_control`` — one slot per ControlKey; two knobs moved together each
                      get their own final value.
    ``global``      — a single shared slot; moving a second knob discards the
                      first knob's pending value.

On release the value is only trusted if the History Tracker saw the control
at least twice within the noise window. A lone tick is dropped and logged.

The coalescer keeps deadlines, not threads: the owner calls ``next_deadline``
to know when to wake up and ``fire_due`` to release what has expired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.config import DebounceScope
from core.control.errors import ControlConfigError
from core.control.history import HistoryTracker
from core.control.scaling import scale
from core.control.types import PAYLOAD_TOKEN, RangeMapping, ResolvedAction

logger = logging.getLogger(__name__)

DEFAULT_QUIET_SECONDS: float = 0.5
_GLOBAL_SLOT = "*"


@dataclass(frozen=True)
class PendingRange:
    """The value waiting for a slot's quiet period to end."""

    key: str
    raw_value: int
    mapping: RangeMapping
    due_at: float


@dataclass(frozen=True)
class FireResult:
    """Outcome of one ``fire_due`` pass."""

    actions: tuple[ResolvedAction, ...] = ()
    suppressed: int = 0
    """Releases dropped because the control was only seen once."""

    errors: int = 0
    """Releases dropped because the mapping could not be applied."""


def render_payload(template: str | None, value: int) -> str | None:
    """Substitute ``value`` for every ``{{payload}}`` token in ``template``."""
    if template is None:
        return None
    return template.replace(PAYLOAD_TOKEN, str(value))


def resolve_range(mapping: RangeMapping, raw_value: int) -> ResolvedAction:
    """Scale ``raw_value`` through ``mapping`` and build the action.

    Raises:
        ScalingRangeError: If the mapping's source range is empty.
    """
    value = scale(raw_value, mapping.min, mapping.max, mapping.to_min, mapping.to_max)
    return ResolvedAction(
        keys=mapping.keys,
        mqtt_topic=mapping.mqtt_topic,
        mqtt_payload=render_payload(mapping.mqtt_payload_template, value),
    )


class DebounceCoalescer:
    """Deadline-based trailing-edge debounce.

    Args:
        quiet_seconds: Quiet period before a pending value is released
            (default: 0.5).
        scope: ``"per_control"`` (default) or ``"global"``.
    """

    def __init__(
        self,
        quiet_seconds: float = DEFAULT_QUIET_SECONDS,
        scope: DebounceScope = "per_control",
    ) -> None:
        if quiet_seconds <= 0:
            raise ValueError(f"quiet_seconds must be positive, got {quiet_seconds}")
        if scope not in ("per_control", "global"):
            raise ValueError(f"scope must be per_control|global, got {scope!r}")
        self._quiet = quiet_seconds
        self._scope = scope
        self._pending: dict[str, PendingRange] = {}

    @property
    def scope(self) -> DebounceScope:
        return self._scope

    def schedule(self, key: str, raw_value: int, mapping: RangeMapping, now: float) -> None:
        """Replace the slot's pending value and restart its quiet period."""
        slot = key if self._scope == "per_control" else _GLOBAL_SLOT
        self._pending[slot] = PendingRange(
            key=key,
            raw_value=raw_value,
            mapping=mapping,
            due_at=now + self._quiet,
        )

    def next_deadline(self) -> float | None:
        """Earliest due time among pending slots, or ``None`` when idle."""
        if not self._pending:
            return None
        return min(p.due_at for p in self._pending.values())

    def pending(self) -> tuple[PendingRange, ...]:
        """Snapshot of pending values (for status output and tests)."""
        return tuple(self._pending.values())

    def fire_due(self, now: float, history: HistoryTracker) -> FireResult:
        """Release every slot whose quiet period has elapsed by ``now``.

        Args:
            now: Current time on the owner's clock.
            history: Tracker consulted to reject uncorroborated single ticks.

        Returns:
            Actions to dispatch, in due-time order, plus drop counters.
        """
        due = sorted(
            (slot for slot, p in self._pending.items() if p.due_at <= now),
            key=lambda slot: self._pending[slot].due_at,
        )
        actions: list[ResolvedAction] = []
        suppressed = 0
        errors = 0
        for slot in due:
            pending = self._pending.pop(slot)
            if not history.is_corroborated(pending.key):
                logger.info(
                    "Single midi signal, ignore it: %s value=%d",
                    pending.key,
                    pending.raw_value,
                )
                suppressed += 1
                continue
            try:
                action = resolve_range(pending.mapping, pending.raw_value)
            except ControlConfigError as exc:
                logger.error("Range mapping %s dropped: %s", pending.mapping.midi, exc)
                errors += 1
                continue
            if action.is_empty:
                logger.warning("Range mapping %s has no keys or mqtt topic", pending.mapping.midi)
                continue
            actions.append(action)
        return FireResult(actions=tuple(actions), suppressed=suppressed, errors=errors)

    def __len__(self) -> int:
        return len(self._pending)
