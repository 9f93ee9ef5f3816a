"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter

from api import __version__
from api.schemas.common import HealthCheckResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse, summary="Liveness check")
async def health() -> HealthCheckResponse:
    return HealthCheckResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.utcnow().isoformat() + "Z",
    )
