"""Prometheus metrics for the MIDI control bridge.

Exposes what the control surface is doing, not just whether the process is
alive: how many messages were accepted or filtered as noise, how many
actions went out, and how often the port had to be reopened.

Metrics:
    mcb_samples_total              Counter of inbound messages by outcome
                                   (accepted/noise/paused/empty)
    mcb_actions_total              Counter of dispatched actions by kind
                                   (discrete/range)
    mcb_range_suppressed_total     Range releases dropped as single ticks
    mcb_port_reopens_total         Port reopen attempts by reason
                                   (watchdog/attach/broker/manual/start)
    mcb_actuator_errors_total      Keystroke/publish failures by actuator
    mcb_port_open                  Gauge, 1 while the input port is open

Usage::

    from infrastructure.metrics import record_sample, record_action

    record_sample("accepted")
    record_action("discrete")
"""

from __future__ import annotations

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

samples_total = Counter(
    "mcb_samples_total",
    "Inbound MIDI messages by classification outcome",
    ["outcome"],
    registry=_REGISTRY,
)

actions_total = Counter(
    "mcb_actions_total",
    "Actions dispatched by kind",
    ["kind"],
    registry=_REGISTRY,
)

range_suppressed_total = Counter(
    "mcb_range_suppressed_total",
    "Debounced range values dropped because the control was seen only once",
    registry=_REGISTRY,
)

port_reopens_total = Counter(
    "mcb_port_reopens_total",
    "MIDI input port reopen attempts by reason",
    ["reason"],
    registry=_REGISTRY,
)

actuator_errors_total = Counter(
    "mcb_actuator_errors_total",
    "Failed keystroke or publish calls by actuator",
    ["actuator"],
    registry=_REGISTRY,
)

port_open = Gauge(
    "mcb_port_open",
    "1 while the MIDI input port is open, else 0",
    registry=_REGISTRY,
)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_sample(outcome: str) -> None:
    """Count one inbound message.

    Args:
        outcome: ``SampleOutcome`` value, e.g. ``"accepted"`` or ``"noise"``.
    """
    samples_total.labels(outcome=outcome).inc()


def record_action(kind: str) -> None:
    """Count one dispatched action (``"discrete"`` or ``"range"``)."""
    actions_total.labels(kind=kind).inc()


def record_range_suppressed(count: int = 1) -> None:
    if count > 0:
        range_suppressed_total.inc(count)


def record_port_reopen(reason: str) -> None:
    """Count one reopen attempt.

    Args:
        reason: What triggered it: ``watchdog``, ``attach``, ``broker``,
            ``manual`` or ``start``.
    """
    port_reopens_total.labels(reason=reason).inc()


def record_actuator_error(actuator: str) -> None:
    """Count one failed actuator call (``"keystroke"`` or ``"mqtt"``)."""
    actuator_errors_total.labels(actuator=actuator).inc()


def set_port_open(is_open: bool) -> None:
    port_open.set(1 if is_open else 0)


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST
