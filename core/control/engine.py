"""core/control/engine.py — The input normalization engine.

Wires classifier, history, coalescer and watchdog around one explicitly
owned ``EngineContext``. The engine is single-threaded and clock-free: every
call receives ``now`` and every side effect comes back as a return value
(actions to dispatch, reopens to perform). ``ingestion/runner.py`` drives it
from a single worker thread; tests drive it with plain floats.

Typical drive loop::

    engine = ControlEngine(config, mappings, started_at=clock())
    ...
    result = engine.handle_sample(sample, now=clock())
    if result.action:
        dispatch(result.action)
    ...
    tick = engine.tick(now=clock())     # at engine.next_deadline()
    for action in tick.actions:
        dispatch(action)
    for reason in tick.reopen_reasons:
        port.open()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from core.config import EngineConfig
from core.control.classifier import Classification, MessageClassifier, SampleOutcome
from core.control.debounce import DebounceCoalescer
from core.control.history import HistoryTracker
from core.control.types import (
    AttachEvent,
    ConnectivityState,
    MappingTable,
    RawSample,
    ResolvedAction,
)
from core.control.watchdog import ConnectivityWatchdog, LinkState

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    """Runtime counters for one engine instance."""

    accepted: int = 0
    noise: int = 0
    paused_drops: int = 0
    discrete_actions: int = 0
    range_actions: int = 0
    range_suppressed: int = 0
    range_errors: int = 0
    reopens_requested: int = 0


@dataclass
class EngineContext:
    """All mutable engine state, owned by one ``ControlEngine``."""

    history: HistoryTracker
    coalescer: DebounceCoalescer
    connectivity: ConnectivityState
    watchdog: ConnectivityWatchdog
    stats: EngineStats = field(default_factory=EngineStats)


@dataclass(frozen=True)
class TickResult:
    """Side effects due at one tick."""

    actions: tuple[ResolvedAction, ...] = ()
    reopen_reasons: tuple[str, ...] = ()
    suppressed: int = 0


@dataclass(frozen=True)
class EngineStatus:
    """Point-in-time snapshot for status endpoints and logs."""

    link_state: LinkState
    port_open: bool
    paused: bool
    seconds_since_last_sample: float | None
    tracked_controls: int
    pending_debounces: int
    stats: EngineStats


class ControlEngine:
    """Serialized processing core.

    Args:
        config: Engine configuration (timings, noise codes, device identity).
        mappings: Mapping table, read-only for the engine's lifetime.
        started_at: Clock value at construction; the first watchdog check is
            one interval later.
    """

    def __init__(self, config: EngineConfig, mappings: MappingTable, started_at: float) -> None:
        connectivity = ConnectivityState()
        self.config = config
        self.context = EngineContext(
            history=HistoryTracker(config.noise_window_seconds),
            coalescer=DebounceCoalescer(config.debounce_seconds, config.debounce_scope),
            connectivity=connectivity,
            watchdog=ConnectivityWatchdog(
                connectivity,
                config.device,
                started_at=started_at,
                interval_seconds=config.watchdog_seconds,
                attach_delay_seconds=config.attach_delay_seconds,
            ),
        )
        self._classifier = MessageClassifier(
            mappings,
            self.context.history,
            self.context.coalescer,
            noise_codes=config.noise_codes,
        )

    # -- inbound --------------------------------------------------------------

    def handle_sample(
        self, sample: RawSample, now: float, delta_time: float = 0.0
    ) -> Classification:
        """Process one raw message.

        Returns:
            The classification. ``action`` is set for a discrete match and
            should be dispatched immediately.
        """
        stats = self.context.stats
        if self.context.connectivity.paused:
            stats.paused_drops += 1
            return Classification(SampleOutcome.PAUSED)

        result = self._classifier.classify(tuple(sample), now)
        if result.outcome is SampleOutcome.NOISE:
            stats.noise += 1
            return result
        if result.outcome is SampleOutcome.ACCEPTED:
            stats.accepted += 1
            self.context.watchdog.note_accepted(now)
            logger.debug("m: %s d: %s", list(sample), delta_time)
            if result.action is not None:
                stats.discrete_actions += 1
        return result

    def handle_attach(self, event: AttachEvent, now: float) -> bool:
        """Forward a hot-plug attach to the watchdog."""
        return self.context.watchdog.on_attach(event, now)

    def pause(self) -> None:
        """Gate all inbound samples. The port stays open."""
        self.context.connectivity.paused = True
        logger.info("Stop midi listening")

    def resume(self) -> None:
        self.context.connectivity.paused = False
        logger.info("Start midi listening")

    def set_port_open(self, is_open: bool) -> None:
        """Record the port controller's latest state."""
        self.context.connectivity.port_open = is_open

    # -- timers ---------------------------------------------------------------

    def next_deadline(self) -> float:
        """Earliest clock value at which ``tick`` has work to do."""
        watchdog_due = self.context.watchdog.next_deadline()
        debounce_due = self.context.coalescer.next_deadline()
        if debounce_due is None:
            return watchdog_due
        return min(watchdog_due, debounce_due)

    def tick(self, now: float) -> TickResult:
        """Fire every timer due at ``now``."""
        ctx = self.context
        fired = ctx.coalescer.fire_due(now, ctx.history)
        ctx.stats.range_actions += len(fired.actions)
        ctx.stats.range_suppressed += fired.suppressed
        ctx.stats.range_errors += fired.errors

        reasons = ctx.watchdog.due(now)
        ctx.stats.reopens_requested += len(reasons)
        return TickResult(
            actions=fired.actions,
            reopen_reasons=tuple(reasons),
            suppressed=fired.suppressed,
        )

    # -- introspection --------------------------------------------------------

    def status(self, now: float) -> EngineStatus:
        ctx = self.context
        last = ctx.connectivity.last_accepted_at
        return EngineStatus(
            link_state=ctx.watchdog.link_state(now),
            port_open=ctx.connectivity.port_open,
            paused=ctx.connectivity.paused,
            seconds_since_last_sample=None if last is None else now - last,
            tracked_controls=len(ctx.history),
            pending_debounces=len(ctx.coalescer),
            stats=replace(ctx.stats),
        )
