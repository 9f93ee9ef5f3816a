"""
Storage layer interface contracts.

TrendStore is the persistence and query boundary used by the orchestrator
and the API. BaseTrendStore implements the rollup recomputation on top of
two storage primitives so every backend aggregates identically.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Protocol, Sequence, Set

from gitbrief.processing.languages import aggregate_language_shares, week_bounds
from gitbrief.types import LanguageShare, LanguageTrend, RepoSnapshot, Summary, TrendEntry


DAILY = "daily"
WEEKLY = "weekly"


# ============================================================================
# Repository Interface (Protocol-based for type checking)
# ============================================================================


class TrendStore(Protocol):
    """Interface for snapshot persistence and date-scoped queries."""

    async def upsert_snapshot(self, snapshot: RepoSnapshot) -> None:
        """
        Insert or update the snapshot keyed by (repo_id, date).

        Index fields are always overwritten. `languages` and `readme_text`
        are only overwritten when the new value is not None.

        Raises:
            StorageError: If the write fails
        """
        ...

    async def save_summary(self, summary: Summary) -> None:
        """Insert or replace the summary for (repo_id, date)."""
        ...

    async def get_summarized_repo_ids(self, day: date) -> Set[int]:
        """IDs of repositories that already have a summary for the day."""
        ...

    async def get_trends(self, day: date) -> List[TrendEntry]:
        """Snapshots with summaries for the day, ordered by rank ascending."""
        ...

    async def recompute_daily_language_trends(self, day: date) -> List[LanguageTrend]:
        """Rebuild and persist the daily rollup from the day's snapshots."""
        ...

    async def recompute_weekly_language_trends(self, week_of: date) -> List[LanguageTrend]:
        """Rebuild and persist the rollup for the ISO week containing week_of."""
        ...

    async def get_daily_language_trends(self, day: date) -> List[LanguageTrend]:
        """Daily rollup, sorted by normalized_percentage descending."""
        ...

    async def get_weekly_language_trends(self, week_of: date) -> List[LanguageTrend]:
        """Weekly rollup for the ISO week containing week_of."""
        ...

    async def close(self) -> None:
        ...


# ============================================================================
# Abstract Base Class
# ============================================================================


class BaseTrendStore(ABC):
    """Abstract base class for TrendStore implementations."""

    @abstractmethod
    async def upsert_snapshot(self, snapshot: RepoSnapshot) -> None:
        pass

    @abstractmethod
    async def save_summary(self, summary: Summary) -> None:
        pass

    @abstractmethod
    async def get_summarized_repo_ids(self, day: date) -> Set[int]:
        pass

    @abstractmethod
    async def get_trends(self, day: date) -> List[TrendEntry]:
        pass

    @abstractmethod
    async def list_language_shares(self, start: date, end: date) -> List[List[LanguageShare]]:
        """Language breakdown of every snapshot dated within [start, end]."""
        pass

    @abstractmethod
    async def replace_language_trends(
        self, kind: str, period: date, rows: Sequence[LanguageTrend]
    ) -> None:
        """Atomically replace all rollup rows of a period."""
        pass

    @abstractmethod
    async def get_language_trends(self, kind: str, period: date) -> List[LanguageTrend]:
        pass

    async def recompute_daily_language_trends(self, day: date) -> List[LanguageTrend]:
        share_lists = await self.list_language_shares(day, day)
        rows = aggregate_language_shares(day, share_lists)
        await self.replace_language_trends(DAILY, day, rows)
        return rows

    async def recompute_weekly_language_trends(self, week_of: date) -> List[LanguageTrend]:
        monday, sunday = week_bounds(week_of)
        share_lists = await self.list_language_shares(monday, sunday)
        rows = aggregate_language_shares(monday, share_lists)
        await self.replace_language_trends(WEEKLY, monday, rows)
        return rows

    async def get_daily_language_trends(self, day: date) -> List[LanguageTrend]:
        return await self.get_language_trends(DAILY, day)

    async def get_weekly_language_trends(self, week_of: date) -> List[LanguageTrend]:
        monday, _ = week_bounds(week_of)
        return await self.get_language_trends(WEEKLY, monday)

    async def close(self) -> None:
        pass


# ============================================================================
# Exceptions
# ============================================================================


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class ConnectionError(StorageError):
    """Exception raised when the database cannot be opened."""

    pass


class IntegrityError(StorageError):
    """Exception raised when a write violates a constraint."""

    pass
