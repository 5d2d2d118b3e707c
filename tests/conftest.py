"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat clock/port/dispatcher boilerplate.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.deps import get_runner
from api.main import app
from core.config import EngineConfig
from core.control.engine import ControlEngine
from core.control.types import DiscreteMapping, MappingTable, RangeMapping, ResolvedAction
from ingestion.runner import EngineRunner

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

T0: float = 1000.0
"""Arbitrary clock origin; nothing may depend on time starting at zero."""

DISCRETE = DiscreteMapping(midi=(176, 7, 127), keys="ctrl+shift a")
RANGE = RangeMapping(midi=(176, 10), mqtt_topic="t", mqtt_payload_template="val={{payload}}")
TABLE = MappingTable(discrete=(DISCRETE,), ranges=(RANGE,))


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakePort:
    """Stands in for ``InputPortController`` — no MIDI backend."""

    def __init__(self, open_result: bool = True, port_name: str | None = "Fake In") -> None:
        self.open_result = open_result
        self.port_name = port_name
        self.port_index: int | None = None
        self.opens = 0
        self.closes = 0
        self._open = False

    @property
    def opened_name(self) -> str | None:
        return self.port_name if self._open else None

    def open(self) -> bool:
        self.close()
        self.opens += 1
        self._open = self.open_result
        return self.open_result

    def close(self) -> None:
        if self._open:
            self.closes += 1
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def resolve(self, ports: list[str]) -> str | None:
        return self.port_name if self.port_name in ports else None


class RecordingDispatcher:
    """Collects dispatched actions instead of pressing keys or publishing."""

    def __init__(self) -> None:
        self.dispatched: list[tuple[str, ResolvedAction]] = []

    def dispatch(self, action: ResolvedAction, kind: str = "discrete") -> None:
        self.dispatched.append((kind, action))

    @property
    def actions(self) -> list[ResolvedAction]:
        return [action for _, action in self.dispatched]


# ---------------------------------------------------------------------------
# Engine / runner fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def engine() -> ControlEngine:
    """Engine with default timings and the two reference mappings."""
    return ControlEngine(EngineConfig(), TABLE, started_at=T0)


@pytest.fixture()
def runner(clock: FakeClock) -> EngineRunner:
    """Runner driven with ``drain()`` on the test thread (no worker)."""
    engine = ControlEngine(EngineConfig(), TABLE, started_at=clock())
    return EngineRunner(engine, FakePort(), RecordingDispatcher(), clock=clock)


# ---------------------------------------------------------------------------
# FastAPI test client fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client(runner: EngineRunner):
    """FastAPI ``TestClient`` with the runner dependency overridden.

    The runner is reachable as ``client.runner``.
    """
    app.dependency_overrides[get_runner] = lambda: runner
    with TestClient(app) as c:
        c.runner = runner  # type: ignore[attr-defined]
        yield c
    app.dependency_overrides.clear()
