"""
Language trend endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_store
from api.routers.trends import resolve_date
from api.schemas.trends import LanguageTrendListResponse, language_trend_to_response
from gitbrief.storage.interfaces import TrendStore

router = APIRouter(prefix="/languages", tags=["Languages"])


@router.get("/daily", response_model=LanguageTrendListResponse, summary="Daily language trends")
async def daily_languages(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    store: TrendStore = Depends(get_store),
) -> LanguageTrendListResponse:
    """Language shares across the day's trending repositories."""
    rows = await store.get_daily_language_trends(resolve_date(day))
    return LanguageTrendListResponse(data=[language_trend_to_response(r) for r in rows])


@router.get("/weekly", response_model=LanguageTrendListResponse, summary="Weekly language trends")
async def weekly_languages(
    day: Optional[date] = Query(None, alias="date", description="Any day of the ISO week"),
    store: TrendStore = Depends(get_store),
) -> LanguageTrendListResponse:
    """Language shares across the Monday to Sunday week containing the date."""
    rows = await store.get_weekly_language_trends(resolve_date(day))
    return LanguageTrendListResponse(data=[language_trend_to_response(r) for r in rows])
