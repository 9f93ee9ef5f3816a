"""
Test fixtures and sample data for development and testing.

This module provides fixtures for creating test data across all layers.
"""

from datetime import date
from typing import Dict, List, Optional

from gitbrief.types import LanguageShare, RepoSnapshot, TrendingRepo


SAMPLE_DATE = date(2024, 1, 17)  # a Wednesday

SAMPLE_LANGUAGES: Dict[str, Dict[str, int]] = {
    "acme/rocket": {"Python": 800, "Rust": 150, "Shell": 50},
    "acme/engine": {"Rust": 9000, "C": 1000},
    "acme/webapp": {"TypeScript": 600, "JavaScript": 300, "CSS": 100},
    "acme/tools": {"Go": 1000},
    "acme/notes": {},
}


# ============================================================================
# Sample Trending Repositories
# ============================================================================


def create_trending_repo(
    repo_id: int = 1,
    repo_name: str = "acme/rocket",
    primary_language: Optional[str] = "Python",
) -> TrendingRepo:
    """Create a sample trending repository."""
    return TrendingRepo(
        repo_id=repo_id,
        repo_name=repo_name,
        primary_language=primary_language,
        description=f"{repo_name} does useful things",
        stars=1000 - repo_id,
        forks=100 + repo_id,
        pull_requests=5,
        pushes=12,
        total_score=500.0 - repo_id,
        contributor_logins="alice,bob",
        collection_names="Developer Tools",
    )


def create_trending_repos(count: int = 5) -> List[TrendingRepo]:
    """Create repositories named after SAMPLE_LANGUAGES, then generic ones."""
    names = list(SAMPLE_LANGUAGES)
    repos = []
    for i in range(count):
        name = names[i] if i < len(names) else f"acme/project-{i}"
        repos.append(create_trending_repo(repo_id=1000 + i, repo_name=name, primary_language=None))
    return repos


# ============================================================================
# Sample Snapshots
# ============================================================================


def create_snapshot(
    day: date = SAMPLE_DATE,
    repo_id: int = 1,
    rank: int = 1,
    languages: Optional[List[tuple]] = None,
    readme_text: Optional[str] = "# Rocket",
) -> RepoSnapshot:
    """Create a sample snapshot. languages is a list of (language, percentage)."""
    shares = None
    if languages is not None:
        shares = [LanguageShare(language=lang, percentage=pct) for lang, pct in languages]

    return RepoSnapshot(
        date=day,
        repo_id=repo_id,
        repo_name=f"acme/repo-{repo_id}",
        url=f"https://github.com/acme/repo-{repo_id}",
        rank=rank,
        score=100.0 - rank,
        primary_language=shares[0].language if shares else None,
        languages=shares,
        description="A sample repository",
        readme_text=readme_text,
        stars=42,
        forks=7,
    )
