from fastapi import FastAPI
from fastapi.responses import Response

from api.routes.control import router as control_router
from infrastructure.metrics import get_metrics_response

app = FastAPI(title="MIDI Control Bridge")

app.include_router(control_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Return a simple liveness check."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns metrics in Prometheus text exposition format.
    """
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
