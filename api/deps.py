"""
FastAPI dependency providers.

The runner is built by ``scripts/run_bridge.py`` before the server starts
and registered here, so every request talks to the same worker.
"""

from fastapi import HTTPException

from ingestion.runner import EngineRunner

_runner: EngineRunner | None = None


def set_runner(runner: EngineRunner | None) -> None:
    """Register (or clear, with ``None``) the process-wide runner."""
    global _runner  # noqa: PLW0603
    _runner = runner


def get_runner() -> EngineRunner:
    """Return the registered runner.

    Raises:
        HTTPException: 503 if the bridge has not been started.
    """
    if _runner is None:
        raise HTTPException(status_code=503, detail="Bridge is not running")
    return _runner
