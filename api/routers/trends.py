"""
Trend endpoints.

Serves the ranked, summarized trending list for a date.
"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_store
from api.schemas.trends import TrendListResponse, entry_to_response
from gitbrief.storage.interfaces import TrendStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trends", tags=["Trends"])


def resolve_date(day: Optional[date]) -> date:
    """Requested date, or today (UTC)."""
    return day or datetime.utcnow().date()


@router.get(
    "",
    response_model=TrendListResponse,
    status_code=status.HTTP_200_OK,
    summary="Trending repositories for a date",
)
async def list_trends(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    store: TrendStore = Depends(get_store),
) -> TrendListResponse:
    """
    Trending repositories with summaries, ordered by rank ascending.

    A date without data returns an empty list.
    """
    target = resolve_date(day)
    entries = await store.get_trends(target)
    logger.debug(f"Serving {len(entries)} trends for {target}")
    return TrendListResponse(data=[entry_to_response(e) for e in entries])
