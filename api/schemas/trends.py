"""
Trend API schemas.

Response models for the daily trending list and the language rollups.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from api.schemas.common import ApiResponse
from gitbrief.types import LanguageTrend, TrendEntry


class LanguageShareResponse(BaseModel):
    """One language of a repository's breakdown."""

    language: str
    percentage: float = Field(..., ge=0.0, le=100.0)


class TrendEntryResponse(BaseModel):
    """A trending repository with its summary."""

    repo_id: int
    repo_name: str
    url: str
    date: date
    rank: int = Field(..., ge=1, description="1-based rank in the trending list")
    score: Optional[float] = None
    primary_language: Optional[str] = None
    languages: Optional[List[LanguageShareResponse]] = Field(
        None, description="Null when the breakdown could not be fetched"
    )
    description: Optional[str] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    pull_requests: Optional[int] = None
    pushes: Optional[int] = None
    contributor_logins: Optional[str] = None
    collection_names: Optional[str] = None
    summary: Optional[str] = Field(None, description="AI summary; null if unavailable")
    summary_produced_at: Optional[datetime] = None


class TrendListResponse(ApiResponse):
    data: Optional[List[TrendEntryResponse]] = None


class LanguageTrendResponse(BaseModel):
    """Aggregated language share for a day or an ISO week."""

    period: date = Field(..., description="The day, or the Monday of the week")
    language: str
    normalized_percentage: float
    repo_count: int


class LanguageTrendListResponse(ApiResponse):
    data: Optional[List[LanguageTrendResponse]] = None


def entry_to_response(entry: TrendEntry) -> TrendEntryResponse:
    """Convert a TrendEntry domain model to the API schema."""
    languages = None
    if entry.languages is not None:
        languages = [
            LanguageShareResponse(language=s.language, percentage=s.percentage)
            for s in entry.languages
        ]

    return TrendEntryResponse(
        repo_id=entry.repo_id,
        repo_name=entry.repo_name,
        url=entry.url,
        date=entry.date,
        rank=entry.rank,
        score=entry.score,
        primary_language=entry.primary_language,
        languages=languages,
        description=entry.description,
        stars=entry.stars,
        forks=entry.forks,
        pull_requests=entry.pull_requests,
        pushes=entry.pushes,
        contributor_logins=entry.contributor_logins,
        collection_names=entry.collection_names,
        summary=entry.summary,
        summary_produced_at=entry.summary_produced_at,
    )


def language_trend_to_response(row: LanguageTrend) -> LanguageTrendResponse:
    return LanguageTrendResponse(
        period=row.period,
        language=row.language,
        normalized_percentage=row.normalized_percentage,
        repo_count=row.repo_count,
    )
