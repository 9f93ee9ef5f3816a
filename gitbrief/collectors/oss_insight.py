"""
OSS Insight trend index adapter.

Reads the ranked trending-repository list from the OSS Insight public API.
Every value in the response rows arrives as a string; this module converts
them into TrendingRepo models.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from gitbrief.collectors.http import parse_json, raise_for_status, send
from gitbrief.collectors.interfaces import PermanentRemoteError
from gitbrief.services.retry import RetryPolicy
from gitbrief.types import TrendingRepo

logger = logging.getLogger(__name__)

SERVICE_NAME = "oss_insight"
TRENDING_ENDPOINT = "/v1/trends/repos/"
DEFAULT_PERIOD = "past_24_hours"


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def row_to_trending_repo(row: Dict[str, Any]) -> TrendingRepo:
    """
    Convert one OSS Insight row into a TrendingRepo.

    Raises:
        PermanentRemoteError: If repo_id or repo_name is missing
    """
    if not isinstance(row, dict):
        raise PermanentRemoteError(f"Trending row is not an object: {row!r}", service=SERVICE_NAME)

    repo_id = _to_int(row.get("repo_id"))
    repo_name = _to_str(row.get("repo_name"))
    if repo_id is None or repo_name is None:
        raise PermanentRemoteError(f"Trending row missing repo_id/repo_name: {row}", service=SERVICE_NAME)

    return TrendingRepo(
        repo_id=repo_id,
        repo_name=repo_name,
        primary_language=_to_str(row.get("primary_language")),
        description=_to_str(row.get("description")),
        stars=_to_int(row.get("stars")),
        forks=_to_int(row.get("forks")),
        pull_requests=_to_int(row.get("pull_requests")),
        pushes=_to_int(row.get("pushes")),
        total_score=_to_float(row.get("total_score")),
        contributor_logins=_to_str(row.get("contributor_logins")),
        collection_names=_to_str(row.get("collection_names")),
    )


class OssInsightTrendSource:
    """
    TrendSource backed by the OSS Insight trending endpoint.

    Example:
        ```python
        source = OssInsightTrendSource(base_url="https://api.ossinsight.io")
        repos = await source.get_trending_repos(limit=50)
        await source.close()
        ```
    """

    def __init__(
        self,
        base_url: str = "https://api.ossinsight.io",
        token: Optional[str] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        period: str = DEFAULT_PERIOD,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the adapter.

        Args:
            base_url: OSS Insight API base URL
            token: Optional bearer token
            timeout: Per-request timeout in seconds
            retry_policy: Backoff policy for transient failures
            period: Trending window requested from the index
            client: Optional pre-built httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.period = period
        self.retry_policy = retry_policy or RetryPolicy()

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._headers = headers

    async def get_trending_repos(self, limit: int) -> List[TrendingRepo]:
        """Fetch at most `limit` trending repositories in rank order."""
        repos = await self.retry_policy.call(self._fetch, service=SERVICE_NAME)
        logger.info(f"Fetched {len(repos)} trending repos from OSS Insight (limit={limit})")
        return repos[:limit]

    async def _fetch(self) -> List[TrendingRepo]:
        url = f"{self.base_url}{TRENDING_ENDPOINT}"
        response = await send(
            self._client,
            "GET",
            url,
            service=SERVICE_NAME,
            headers=self._headers,
            params={"period": self.period},
        )
        raise_for_status(response, SERVICE_NAME)
        payload = parse_json(response, SERVICE_NAME)

        try:
            rows = payload["data"]["rows"]
        except (KeyError, TypeError) as e:
            raise PermanentRemoteError("OSS Insight response has no data.rows", service=SERVICE_NAME) from e

        if not isinstance(rows, list):
            raise PermanentRemoteError("OSS Insight data.rows is not a list", service=SERVICE_NAME)

        return [row_to_trending_repo(row) for row in rows]

    async def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()
