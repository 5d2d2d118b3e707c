"""Process-wide logging setup for the bridge.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look. Output goes to stderr so the
bridge can run under systemd or a container runtime without a log file.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(name)s] %(levelname)s %(message)s"
_LOG_DATE_FORMAT = "%H:%M:%S"

_NOISY_LOGGERS = (
    "paho",
    "urllib3",
    "uvicorn",
    "uvicorn.access",
)


def parse_level(name: str | int) -> int:
    """Turn ``"debug"`` / ``"INFO"`` / ``10`` into a logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure the root logger to write to stderr.

    Call once, before the port or the API server starts. Calling it again
    replaces the previous handler instead of stacking a second one.

    Args:
        level: Logging level or level name (default: INFO)
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(parse_level(level))

    # Third-party loggers that write INFO spam
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
