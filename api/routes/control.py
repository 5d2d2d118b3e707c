"""
Control routes for the running bridge.

``GET /status``   — engine snapshot (link state, counters).
``POST /pause``   — stop reacting to MIDI input (the port stays open).
``POST /resume``  — react to MIDI input again.
``POST /reopen``  — close and reopen the MIDI input port.
``GET /ports``    — MIDI input ports visible right now.

Commands are queued to the engine worker and applied in order with the
inbound MIDI stream, hence ``202 Accepted``.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_runner
from api.schemas.control import (
    CommandResponse,
    EngineStatsModel,
    PortsResponse,
    StatusResponse,
)
from ingestion.midi_port import enumerate_ports
from ingestion.runner import REASON_MANUAL, EngineRunner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["control"])

Runner = Annotated[EngineRunner, Depends(get_runner)]


@router.get("/status", response_model=StatusResponse)
def status(runner: Runner) -> StatusResponse:
    """Return a point-in-time snapshot of the engine."""
    snapshot = runner.status()
    return StatusResponse(
        link_state=snapshot.link_state.value,
        port_open=snapshot.port_open,
        port_name=runner.port.opened_name,
        paused=snapshot.paused,
        seconds_since_last_sample=snapshot.seconds_since_last_sample,
        tracked_controls=snapshot.tracked_controls,
        pending_debounces=snapshot.pending_debounces,
        stats=EngineStatsModel(**vars(snapshot.stats)),
    )


@router.post("/pause", response_model=CommandResponse, status_code=202)
def pause(runner: Runner) -> CommandResponse:
    runner.pause()
    return CommandResponse(command="pause")


@router.post("/resume", response_model=CommandResponse, status_code=202)
def resume(runner: Runner) -> CommandResponse:
    runner.resume()
    return CommandResponse(command="resume")


@router.post("/reopen", response_model=CommandResponse, status_code=202)
def reopen(runner: Runner) -> CommandResponse:
    """Close and reopen the MIDI port, e.g. after switching USB hubs."""
    runner.request_reopen(REASON_MANUAL)
    return CommandResponse(command="reopen")


@router.get("/ports", response_model=PortsResponse)
def ports(runner: Runner) -> PortsResponse:
    """List MIDI input ports and which one the configuration selects."""
    try:
        names = enumerate_ports()
    except Exception as exc:
        logger.error("MIDI port enumeration failed: %s", exc)
        raise HTTPException(status_code=500, detail="MIDI port enumeration failed") from exc
    return PortsResponse(
        ports=names,
        configured_name=runner.port.port_name,
        configured_index=runner.port.port_index,
        selected=runner.port.resolve(names),
    )
