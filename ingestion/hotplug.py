"""ingestion/hotplug.py — USB attach detection by polling pyusb.

libusb hot-plug callbacks are not portable, so the monitor enumerates the
bus once per ``poll_seconds`` and diffs the result:

    scan 0   {a, b}        baseline, nothing reported
    scan 1   {a, b, c}     → AttachEvent(c)
    scan 2   {a, c}        b detached (not reported)
    scan 3   {a, b, c}     → AttachEvent(b)

A device is identified by ``(bus, address, vendor_id, product_id)``. A
re-plugged device gets a new address, so it is reported again.

The callback runs on the monitor thread and must only enqueue.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

import usb.core
import usb.util

from core.control.types import AttachEvent

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS: float = 1.0

DeviceId = tuple[int, int, int, int]
"""``(bus, address, vendor_id, product_id)``."""


def _device_id(device: Any) -> DeviceId:
    return (
        int(getattr(device, "bus", 0) or 0),
        int(getattr(device, "address", 0) or 0),
        int(device.idVendor),
        int(device.idProduct),
    )


def _device_name(device: Any) -> str:
    """Product string, or ``""`` when the OS does not let us read it."""
    index = getattr(device, "iProduct", 0)
    if not index:
        return ""
    try:
        return usb.util.get_string(device, index) or ""
    except (ValueError, NotImplementedError, usb.core.USBError) as exc:
        logger.debug("Cannot read product string of %04x:%04x: %s",
                     device.idVendor, device.idProduct, exc)
        return ""


def scan_devices() -> dict[DeviceId, Any]:
    """Enumerate every USB device on every bus.

    Raises:
        usb.core.NoBackendError: If no libusb backend is installed.
    """
    return {_device_id(dev): dev for dev in usb.core.find(find_all=True)}


class UsbHotplugMonitor:
    """Background poller reporting newly attached USB devices.

    Args:
        on_attach: Called with an ``AttachEvent`` for every new device.
        poll_seconds: Interval between scans (default: 1.0).
    """

    def __init__(
        self,
        on_attach: Callable[[AttachEvent], None],
        poll_seconds: float = DEFAULT_POLL_SECONDS,
    ) -> None:
        if poll_seconds <= 0:
            raise ValueError(f"poll_seconds must be positive, got {poll_seconds}")
        self._on_attach = on_attach
        self._poll = poll_seconds
        self._known: set[DeviceId] | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> list[AttachEvent]:
        """Scan the bus and report devices absent from the previous scan.

        The first call only records the baseline and returns ``[]``.
        """
        devices = scan_devices()
        current = set(devices)
        if self._known is None:
            self._known = current
            logger.info("USB baseline: %d devices", len(current))
            return []

        added = sorted(current - self._known)
        self._known = current
        events = []
        for dev_id in added:
            device = devices[dev_id]
            event = AttachEvent(
                vendor_id=dev_id[2],
                product_id=dev_id[3],
                name=_device_name(device),
            )
            logger.debug("USB add: %s", event)
            events.append(event)
        return events

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="usb-hotplug", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                events = self.poll_once()
            except (usb.core.NoBackendError, usb.core.USBError) as exc:
                logger.error("USB hot-plug monitor stopped: %s", exc)
                return
            for event in events:
                self._on_attach(event)
            self._stop.wait(self._poll)
