"""
Pydantic schemas for the control endpoints.

Response models only: every control endpoint is a bodyless command or a
read-only snapshot.
"""

from pydantic import BaseModel, Field


class EngineStatsModel(BaseModel):
    """Counters since the engine was built."""

    accepted: int = Field(..., description="Samples that passed the noise filter.")
    noise: int = Field(..., description="Samples dropped by noise status code.")
    paused_drops: int = Field(..., description="Samples dropped while paused.")
    discrete_actions: int = Field(..., description="Discrete actions emitted.")
    range_actions: int = Field(..., description="Debounced range actions emitted.")
    range_suppressed: int = Field(
        ..., description="Range releases dropped because the control was seen only once."
    )
    range_errors: int = Field(..., description="Range releases dropped by a scaling error.")
    reopens_requested: int = Field(
        ..., description="Reopens requested by the watchdog or an attach event."
    )


class StatusResponse(BaseModel):
    """Response body for ``GET /status``."""

    link_state: str = Field(..., description="One of 'active', 'stale', 'paused'.")
    port_open: bool
    port_name: str | None = Field(default=None, description="Name of the open port, if any.")
    paused: bool
    seconds_since_last_sample: float | None = Field(
        default=None, description="None until the first sample is accepted."
    )
    tracked_controls: int = Field(..., ge=0)
    pending_debounces: int = Field(..., ge=0)
    stats: EngineStatsModel


class CommandResponse(BaseModel):
    """Response body for the command endpoints (queued, not yet applied)."""

    status: str = Field(default="queued")
    command: str


class PortsResponse(BaseModel):
    """Response body for ``GET /ports``."""

    ports: list[str]
    configured_name: str | None = None
    configured_index: int | None = None
    selected: str | None = Field(
        default=None, description="Port that would be opened now, or None."
    )
