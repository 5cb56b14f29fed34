"""Health check endpoint for oidstore API."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from oidstore import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str
    backend: str | None


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns JSON with status, time (ISO-8601), version and the name of the
    configured storage backend (None when no store is bound).
    """
    store = getattr(request.app.state, "object_store", None)
    return HealthResponse(
        status="ok",
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        backend=store.backend_name if store is not None else None,
    )
