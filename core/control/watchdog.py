"""core/control/watchdog.py — Liveness of the hardware link.

The watchdog never touches the port. It tells its owner *when* a reopen is
needed and *why*; the owner performs it.

State machine (inferred, not stored)::

    ACTIVE ──(check finds no sample for > interval)──→ STALE
      ↑                                                  │
      └──────────────(next accepted sample)──────────────┘   reopen requested

    any state ──(attach of the configured device)──→ reopen after attach delay
    PAUSED: samples are gated upstream, so the watchdog is not fed and a long
            pause ends in a reopen attempt as well.

When no device identity is configured, attach events never trigger a
reopen. Each one is logged with a ready-to-paste configuration snippet so the
operator can identify the device.
"""

from __future__ import annotations

import logging
from enum import Enum

from core.config import DeviceIdentity
from core.control.types import AttachEvent, ConnectivityState

logger = logging.getLogger(__name__)

REASON_WATCHDOG = "watchdog"
REASON_ATTACH = "attach"


class LinkState(Enum):
    """Observable link states for status output."""

    ACTIVE = "active"
    STALE = "stale"
    PAUSED = "paused"


class ConnectivityWatchdog:
    """Inactivity timeout and reconnect-on-attach.

    Args:
        state: Shared connectivity state (``last_accepted_at`` is read here,
            written via ``note_accepted``).
        device: Identity used to match attach events.
        started_at: Clock value when monitoring starts; first check is one
            interval later.
        interval_seconds: Check interval and inactivity threshold (default: 600).
        attach_delay_seconds: Delay between attach and reopen (default: 0.5).
    """

    def __init__(
        self,
        state: ConnectivityState,
        device: DeviceIdentity,
        started_at: float,
        interval_seconds: float = 600.0,
        attach_delay_seconds: float = 0.5,
    ) -> None:
        self._state = state
        self._device = device
        self._interval = interval_seconds
        self._attach_delay = attach_delay_seconds
        self._next_check_at = started_at + interval_seconds
        self._reopen_at: float | None = None

    @property
    def next_check_at(self) -> float:
        return self._next_check_at

    @property
    def reopen_at(self) -> float | None:
        """Due time of a pending attach-triggered reopen, if any."""
        return self._reopen_at

    def note_accepted(self, now: float) -> None:
        """Feed the watchdog with an accepted sample."""
        self._state.last_accepted_at = now

    def is_stale(self, now: float) -> bool:
        """True if nothing was accepted for longer than the interval."""
        last = self._state.last_accepted_at
        return last is None or now - last > self._interval

    def link_state(self, now: float) -> LinkState:
        if self._state.paused:
            return LinkState.PAUSED
        return LinkState.STALE if self.is_stale(now) else LinkState.ACTIVE

    def on_attach(self, event: AttachEvent, now: float) -> bool:
        """React to a hot-plug attach.

        Returns:
            True if a reopen was scheduled.
        """
        if not self._device.is_configured:
            logger.info("USB device attached: %s", event)
            logger.info(
                "To auto-reconnect, add to the midi section of the config: "
                "port_name: '%s', device: { vid: %d, pid: %d }",
                event.name,
                event.vendor_id,
                event.product_id,
            )
            return False

        if not self._device.matches(event.vendor_id, event.product_id):
            logger.debug(
                "Ignoring attach of %04x:%04x", event.vendor_id, event.product_id
            )
            return False

        self._reopen_at = now + self._attach_delay
        logger.info(
            "Configured MIDI device attached (%04x:%04x), reopening in %.1fs",
            event.vendor_id,
            event.product_id,
            self._attach_delay,
        )
        return True

    def due(self, now: float) -> list[str]:
        """Return reopen reasons that are due at ``now``.

        Advances the periodic check schedule; a late tick runs the check once
        and realigns to the next future interval.
        """
        reasons: list[str] = []
        if self._reopen_at is not None and now >= self._reopen_at:
            self._reopen_at = None
            reasons.append(REASON_ATTACH)

        if now >= self._next_check_at:
            while self._next_check_at <= now:
                self._next_check_at += self._interval
            if self.is_stale(now):
                last = self._state.last_accepted_at
                logger.warning(
                    "No MIDI input for %s, reopening port",
                    "ever" if last is None else f"{now - last:.0f}s",
                )
                reasons.append(REASON_WATCHDOG)
        return reasons

    def next_deadline(self) -> float:
        """Earliest time the watchdog needs to be consulted again."""
        if self._reopen_at is None:
            return self._next_check_at
        return min(self._next_check_at, self._reopen_at)
