"""
Collection API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from api.schemas.common import ApiResponse
from gitbrief.types import RunState


class ProgressEvent(BaseModel):
    """Payload of one progress stream event."""

    message: str
    current_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    is_running: bool


class RunStateResponse(ProgressEvent):
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class RunStateEnvelope(ApiResponse):
    data: Optional[RunStateResponse] = None


def state_to_event(state: RunState) -> ProgressEvent:
    return ProgressEvent(
        message=state.message,
        current_count=state.current_count,
        total_count=state.total_count,
        is_running=state.is_running,
    )


def state_to_response(state: RunState) -> RunStateResponse:
    return RunStateResponse(
        message=state.message,
        current_count=state.current_count,
        total_count=state.total_count,
        is_running=state.is_running,
        started_at=state.started_at,
        finished_at=state.finished_at,
    )
