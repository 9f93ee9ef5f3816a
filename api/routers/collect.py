"""
Collection endpoints.

POST /collect starts a run; GET /collect/progress streams RunState
snapshots as server-sent events until the run ends.
"""

import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse

from api.dependencies import get_orchestrator, get_tracker
from api.schemas.collect import RunStateEnvelope, state_to_event, state_to_response
from api.schemas.common import ApiResponse, error_body
from gitbrief.orchestrator import CollectionOrchestrator
from gitbrief.services.progress import ProgressTracker
from gitbrief.types import RunState, TriggerResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collect", tags=["Collect"])

ALREADY_RUNNING_ERROR = "Collection already in progress; follow /api/collect/progress"


def format_event(state: RunState) -> str:
    """Encode one RunState as an SSE data frame."""
    payload = state_to_event(state).model_dump()
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Start a collection run",
    responses={409: {"model": ApiResponse, "description": "A run is already in progress"}},
)
async def trigger_collection(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
):
    """
    Start collecting today's trending repositories.

    Returns immediately. Returns 409 with success=false if a run is
    already in progress; the caller should follow the progress stream.
    """
    result = await orchestrator.trigger()

    if result == TriggerResult.ALREADY_RUNNING:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body(ALREADY_RUNNING_ERROR),
        )

    return ApiResponse(success=True, data={"status": result.value})


@router.get(
    "/progress",
    summary="Stream collection progress",
    response_class=StreamingResponse,
)
async def stream_progress(tracker: ProgressTracker = Depends(get_tracker)):
    """
    Server-sent event stream of {message, current_count, total_count, is_running}.

    The stream closes after the first event with is_running=false. A client
    connecting while no run is active gets exactly one such event.
    """
    subscription = tracker.subscribe()

    async def event_stream() -> AsyncIterator[str]:
        try:
            async for state in subscription:
                yield format_event(state)
        finally:
            subscription.close()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get(
    "/status",
    response_model=RunStateEnvelope,
    summary="Current collection state",
)
async def get_status(tracker: ProgressTracker = Depends(get_tracker)) -> RunStateEnvelope:
    """Current RunState, once."""
    return RunStateEnvelope(data=state_to_response(tracker.snapshot()))
