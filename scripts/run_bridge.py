#!/usr/bin/env python
"""MIDI control bridge — one-command runner.

Usage
-----
    # Run with a config file and the control API on :8000
    python scripts/run_bridge.py --config config.yaml

    # Show the MIDI input ports the backend can see, then exit
    python scripts/run_bridge.py --list-ports

    # Headless, no HTTP API (Ctrl+C to stop)
    python scripts/run_bridge.py --config config.yaml --no-api

Exit codes
----------
    0  — clean shutdown
    2  — configuration error
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn  # noqa: E402

from api.deps import set_runner  # noqa: E402
from infrastructure.log_setup import configure_logging  # noqa: E402
from ingestion.bridge import Bridge  # noqa: E402
from ingestion.config_loader import load_config  # noqa: E402
from ingestion.midi_port import enumerate_ports  # noqa: E402

logger = logging.getLogger("run_bridge")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="MIDI control surface bridge")
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (default: environment only)",
    )
    p.add_argument(
        "--list-ports",
        action="store_true",
        help="Print MIDI input ports and exit",
    )
    p.add_argument("--api-host", default="127.0.0.1", help="Control API bind host")
    p.add_argument("--api-port", type=int, default=8000, help="Control API port")
    p.add_argument(
        "--no-api",
        action="store_true",
        help="Do not serve the control API; block until Ctrl+C",
    )
    p.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ...")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.list_ports:
        for index, name in enumerate(enumerate_ports()):
            print(f"{index}: {name}")
        return 0

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    bridge = Bridge(config)
    set_runner(bridge.runner)
    bridge.start()
    try:
        if args.no_api:
            threading.Event().wait()
        else:
            uvicorn.run(
                "api.main:app",
                host=args.api_host,
                port=args.api_port,
                log_level=args.log_level.lower(),
            )
    except KeyboardInterrupt:
        pass
    finally:
        bridge.stop()
        set_runner(None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
