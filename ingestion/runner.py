"""ingestion/runner.py — Serialized worker that drives the engine.

Threads and who they talk to::

    MIDI driver thread ──submit_sample──┐
    USB hot-plug thread ──submit_attach─┤
    paho network thread ─request_reopen─┼──► queue.Queue ──► worker thread
    API handlers ──pause/resume/reopen──┘                      │
                                                               ├─ ControlEngine
                                                               ├─ InputPortController
                                                               └─ ActionDispatcher

Producers only enqueue. The worker is the one thread that touches engine
state, opens or closes the port and dispatches actions. Between events it
blocks on the queue for at most the time left until the engine's next
deadline (debounce release, attach reopen, watchdog check) and then ticks.

``drain()`` processes whatever is queued on the calling thread; tests use it
with a fake clock instead of starting the worker.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Any

from core.control.engine import ControlEngine, EngineStatus
from core.control.types import AttachEvent
from infrastructure import metrics
from ingestion.actuators import ActionDispatcher
from ingestion.midi_port import InputPortController

logger = logging.getLogger(__name__)

REASON_START = "start"
REASON_MANUAL = "manual"
REASON_BROKER = "broker"

_SAMPLE = "sample"
_ATTACH = "attach"
_PAUSE = "pause"
_RESUME = "resume"
_REOPEN = "reopen"
_STOP = "stop"


class EngineRunner:
    """Owns the worker thread and the inbound queue.

    Args:
        engine: The engine to drive. Must have been built with ``clock``.
        port: Port controller opened at start and on every reopen.
        dispatcher: Receives every resolved action.
        clock: Monotonic clock in seconds (default: ``time.monotonic``).
    """

    def __init__(
        self,
        engine: ControlEngine,
        port: InputPortController,
        dispatcher: ActionDispatcher,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.port = port
        self.dispatcher = dispatcher
        self._clock = clock
        self._queue: queue.Queue[tuple[str, Any]] = queue.Queue()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    # -- producers (any thread) ----------------------------------------------

    def submit_sample(self, delta_time: float, sample: tuple[int, ...]) -> None:
        self._queue.put((_SAMPLE, (delta_time, tuple(sample))))

    def submit_attach(self, event: AttachEvent) -> None:
        self._queue.put((_ATTACH, event))

    def pause(self) -> None:
        self._queue.put((_PAUSE, None))

    def resume(self) -> None:
        self._queue.put((_RESUME, None))

    def request_reopen(self, reason: str = REASON_MANUAL) -> None:
        """Ask the worker to close and reopen the port."""
        self._queue.put((_REOPEN, reason))

    # -- lifecycle ------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker and open the port on it."""
        if self.running:
            return
        self.request_reopen(REASON_START)
        self._thread = threading.Thread(target=self._run, name="engine-worker", daemon=True)
        self._thread.start()
        logger.info("midi listen start")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the worker and close the port."""
        if self._thread is not None:
            self._queue.put((_STOP, None))
            self._thread.join(timeout)
            self._thread = None
        with self._lock:
            self.port.close()
            self._set_port_open(False)
        logger.info("midi listen stop")

    def status(self) -> EngineStatus:
        with self._lock:
            return self.engine.status(self._clock())

    # -- worker ---------------------------------------------------------------

    def drain(self) -> None:
        """Handle every queued event, then fire due timers, on this thread."""
        while True:
            try:
                kind, payload = self._queue.get_nowait()
            except queue.Empty:
                break
            if kind != _STOP:
                self._handle(kind, payload)
        self._fire_due()

    def _run(self) -> None:
        while True:
            timeout = max(0.0, self.engine.next_deadline() - self._clock())
            try:
                kind, payload = self._queue.get(timeout=timeout)
            except queue.Empty:
                pass
            else:
                if kind == _STOP:
                    return
                self._handle(kind, payload)
            self._fire_due()

    def _handle(self, kind: str, payload: Any) -> None:
        try:
            with self._lock:
                if kind == _SAMPLE:
                    self._on_sample(*payload)
                elif kind == _ATTACH:
                    self.engine.handle_attach(payload, self._clock())
                elif kind == _PAUSE:
                    self.engine.pause()
                elif kind == _RESUME:
                    self.engine.resume()
                elif kind == _REOPEN:
                    self._reopen([payload])
        except Exception:
            logger.exception("Error while handling %s event", kind)

    def _fire_due(self) -> None:
        now = self._clock()
        if now < self.engine.next_deadline():
            return
        try:
            with self._lock:
                result = self.engine.tick(now)
                metrics.record_range_suppressed(result.suppressed)
                for action in result.actions:
                    self.dispatcher.dispatch(action, kind="range")
                if result.reopen_reasons:
                    self._reopen(list(result.reopen_reasons))
        except Exception:
            logger.exception("Error while firing timers")

    def _on_sample(self, delta_time: float, sample: tuple[int, ...]) -> None:
        result = self.engine.handle_sample(sample, self._clock(), delta_time)
        metrics.record_sample(result.outcome.value)
        if result.action is not None:
            self.dispatcher.dispatch(result.action, kind="discrete")

    def _reopen(self, reasons: list[str]) -> None:
        # One open per batch; several triggers in the same tick share it.
        unique = list(dict.fromkeys(reasons))
        for reason in unique:
            metrics.record_port_reopen(reason)
        logger.info("Reopening MIDI port (%s)", ", ".join(unique))
        try:
            self.port.open()
        finally:
            self._set_port_open(self.port.is_open())

    def _set_port_open(self, is_open: bool) -> None:
        self.engine.set_port_open(is_open)
        metrics.set_port_open(is_open)
