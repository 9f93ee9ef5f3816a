"""
Collector interface contracts.

Protocols for the two remote services the pipeline reads from, and the
error hierarchy shared by every remote call site.
"""

from typing import Dict, List, Optional, Protocol

from gitbrief.types import TrendingRepo


class TrendSource(Protocol):
    """Interface for the remote trend index."""

    async def get_trending_repos(self, limit: int) -> List[TrendingRepo]:
        """
        Fetch the ranked trending-repository list.

        Args:
            limit: Maximum number of repositories to return

        Returns:
            Repositories in rank order (best first)

        Raises:
            RemoteError: If the index cannot be read
        """
        ...


class RepoSource(Protocol):
    """Interface for per-repository metadata (languages and README)."""

    async def get_languages(self, repo_name: str) -> Dict[str, int]:
        """
        Fetch raw language byte counts for a repository.

        Raises:
            RemoteError: If the call fails
        """
        ...

    async def get_readme(self, repo_name: str) -> Optional[str]:
        """
        Fetch README text from the default branch.

        Returns:
            README text, or None if the repository has no README

        Raises:
            RemoteError: If the call fails
        """
        ...


# ============================================================================
# Exceptions
# ============================================================================


class RemoteError(Exception):
    """Base exception for remote service failures."""

    def __init__(self, message: str, service: str = "remote", status_code: Optional[int] = None):
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class TransientRemoteError(RemoteError):
    """Timeout, transport failure, 5xx or rate limit. Worth retrying."""

    pass


class PermanentRemoteError(RemoteError):
    """Auth failure or malformed response. Retrying will not help."""

    pass
