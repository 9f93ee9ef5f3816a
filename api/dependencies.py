"""
FastAPI dependency injection providers.

Components live on the application state built by the lifespan handler;
these functions hand them to the routers.
"""

from fastapi import HTTPException, status

from gitbrief.orchestrator import CollectionOrchestrator
from gitbrief.services.progress import ProgressTracker
from gitbrief.storage.interfaces import TrendStore


async def get_store() -> TrendStore:
    """
    Get the trend store from application state.

    Raises:
        HTTPException: If storage is not initialized
    """
    from api.main import app_state

    if app_state.store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage not initialized",
        )

    return app_state.store


async def get_tracker() -> ProgressTracker:
    """Get the process-wide progress tracker."""
    from api.main import app_state

    return app_state.tracker


async def get_orchestrator() -> CollectionOrchestrator:
    """
    Get the collection orchestrator from application state.

    Raises:
        HTTPException: If the orchestrator is not initialized
    """
    from api.main import app_state

    if app_state.orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Collection pipeline not initialized",
        )

    return app_state.orchestrator
