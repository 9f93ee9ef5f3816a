"""
Shared type definitions for Daily Git Brief.

These models are the contract between the collectors, the orchestrator,
the storage layer and the API.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================


class TriggerResult(str, Enum):
    """Outcome of a collection trigger request."""

    STARTED = "started"
    ALREADY_RUNNING = "already_running"  # Caller should follow the progress stream


class RepoOutcome(str, Enum):
    """How a single repository fared during a run."""

    FULL = "full"  # Languages and summary obtained
    PARTIAL = "partial"  # Persisted with a missing field
    SKIPPED = "skipped"  # Already summarized for the date
    FAILED = "failed"  # Could not be persisted


# ============================================================================
# Remote Models
# ============================================================================


class TrendingRepo(BaseModel):
    """A row of the trend index's ranked list, before enrichment."""

    repo_id: int
    repo_name: str  # owner/name
    primary_language: Optional[str] = None
    description: Optional[str] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    pull_requests: Optional[int] = None
    pushes: Optional[int] = None
    total_score: Optional[float] = None
    contributor_logins: Optional[str] = None
    collection_names: Optional[str] = None

    @property
    def url(self) -> str:
        return f"https://github.com/{self.repo_name}"


# ============================================================================
# Core Data Models
# ============================================================================


class LanguageShare(BaseModel):
    """Share of a repository's code written in one language."""

    language: str
    percentage: float

    model_config = ConfigDict(frozen=True)


class RepoSnapshot(BaseModel):
    """A trending repository as seen on one date. Keyed by (repo_id, date)."""

    date: date
    repo_id: int
    repo_name: str
    url: str
    rank: int
    score: Optional[float] = None
    primary_language: Optional[str] = None
    # None means the language breakdown could not be fetched
    languages: Optional[List[LanguageShare]] = None
    description: Optional[str] = None
    readme_text: Optional[str] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    pull_requests: Optional[int] = None
    pushes: Optional[int] = None
    contributor_logins: Optional[str] = None
    collection_names: Optional[str] = None


class Summary(BaseModel):
    """AI-generated summary, soft-linked to a snapshot."""

    repo_id: int
    date: date
    text: str
    produced_at: datetime = Field(default_factory=datetime.utcnow)


class TrendEntry(RepoSnapshot):
    """Snapshot joined with its summary, as served to the dashboard."""

    summary: Optional[str] = None
    summary_produced_at: Optional[datetime] = None


class LanguageTrend(BaseModel):
    """Aggregated language share over a period (a day or an ISO week)."""

    period: date  # The day, or the Monday of the week
    language: str
    normalized_percentage: float
    repo_count: int


class RunState(BaseModel):
    """Point-in-time view of the collection run."""

    is_running: bool = False
    message: str = "idle"
    current_count: int = 0
    total_count: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)
