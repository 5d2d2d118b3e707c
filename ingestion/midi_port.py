"""ingestion/midi_port.py — MIDI input port controller (mido / python-rtmidi).

This module is the I/O boundary between the hardware and the engine. It owns
the single open input port and turns every ``mido.Message`` delivered on the
driver's callback thread into a raw sample tuple for the sink. It never
classifies anything itself; core/ stays pure.

Port selection
──────────────
``open()`` always closes the current port first, then resolves:

    1. an input whose name equals ``port_name`` exactly
    2. else ``port_index`` into the enumerated list
    3. else: log "Cannot find MIDI device", stay closed, return False

A failed open is never raised. The next watchdog cycle, attach event,
broker reconnect or API reopen will try again.

Message classes
───────────────
mido's rtmidi backend drops active sensing by default. After opening, the
filter is reset so clock, active sensing and sysex all reach the sink and
the engine's noise codes decide what to discard.

Threading
─────────
``open``/``close`` are called only by the engine worker thread. The sink is
called on the driver's thread and must only enqueue.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import mido

logger = logging.getLogger(__name__)

SampleSink = Callable[[float, tuple[int, ...]], None]
"""``sink(delta_time, sample)``, called on the MIDI driver thread."""


def enumerate_ports() -> list[str]:
    """Names of all MIDI input ports currently visible to the backend."""
    return list(mido.get_input_names())


def message_to_sample(message: Any) -> tuple[int, ...]:
    """Flatten a ``mido.Message`` to its raw status/data bytes.

    Example:
        >>> message_to_sample(mido.Message("control_change", control=10, value=64))
        (176, 10, 64)
    """
    return tuple(message.bytes())


class InputPortController:
    """Opens, reopens and closes the one MIDI input port.

    Args:
        sink: Receives ``(delta_time, sample)`` for every delivered message.
        port_name: Exact port name to prefer.
        port_index: Fallback index into ``enumerate_ports()``.

    Example::

        port = InputPortController(runner.submit_sample, port_name="Reface DX")
        if not port.open():
            ...  # stays closed until the next reopen trigger
    """

    def __init__(
        self,
        sink: SampleSink,
        port_name: str | None = None,
        port_index: int | None = None,
    ) -> None:
        self._sink = sink
        self.port_name = port_name
        self.port_index = port_index
        self._port: Any | None = None
        self._opened_name: str | None = None

    @property
    def opened_name(self) -> str | None:
        """Name of the open port, or ``None`` while closed."""
        return self._opened_name if self.is_open() else None

    def is_open(self) -> bool:
        return self._port is not None and not getattr(self._port, "closed", False)

    def resolve(self, ports: list[str]) -> str | None:
        """Pick a port name from ``ports`` using name, then index."""
        if self.port_name and self.port_name in ports:
            return self.port_name
        if self.port_index is not None and 0 <= self.port_index < len(ports):
            return ports[self.port_index]
        return None

    def open(self) -> bool:
        """(Re)open the configured port.

        Returns:
            True if a port is open afterwards.
        """
        self.close()

        try:
            ports = enumerate_ports()
        except Exception as exc:  # rtmidi raises its own error types
            logger.error("Failed to list MIDI ports: %s", exc)
            return False
        logger.info("Total midi ports: %d", len(ports))
        logger.info("MIDI ports: %s", ", ".join(f"{i}: {name}" for i, name in enumerate(ports)))

        name = self.resolve(ports)
        if name is None:
            logger.warning("Cannot find MIDI device %r", self.port_name)
            return False

        logger.info("Try to use port %d: %s", ports.index(name), name)
        try:
            self._port = mido.open_input(name, callback=self._on_message)
        except Exception as exc:  # rtmidi raises its own error types
            logger.error("Failed to open MIDI port %r: %s", name, exc)
            self._port = None
            return False

        self._accept_all_message_types()
        self._opened_name = name
        logger.info("Opened MIDI port %s", name)
        return True

    def close(self) -> None:
        """Close the port if open. Safe to call repeatedly."""
        if self._port is None:
            return
        if self.is_open():
            logger.info("Close midi port")
            try:
                self._port.close()
            except OSError as exc:
                logger.warning("Error while closing MIDI port: %s", exc)
        self._port = None
        self._opened_name = None

    # -- internals ------------------------------------------------------------

    def _accept_all_message_types(self) -> None:
        # (sysex, timing, active sensing): False means "deliver"
        rt = getattr(self._port, "_rt", None)
        if rt is not None:
            rt.ignore_types(False, False, False)

    def _on_message(self, message: Any) -> None:
        delta = float(getattr(message, "time", 0.0) or 0.0)
        self._sink(delta, message_to_sample(message))
