"""
GitHub adapter for per-repository enrichment.

Fetches raw language byte counts from the REST API and README text from
the repository's default branch on raw.githubusercontent.com.
"""

import logging
from typing import Dict, Optional

import httpx

from gitbrief.collectors.http import parse_json, raise_for_status, send
from gitbrief.collectors.interfaces import PermanentRemoteError
from gitbrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

SERVICE_NAME = "github"
GITHUB_API_ACCEPT_HEADER = "application/vnd.github+json"
USER_AGENT = "Daily-Git-Brief"

REPO_ENDPOINT_TEMPLATE = "/repos/{repo_name}"
LANGUAGES_ENDPOINT_TEMPLATE = "/repos/{repo_name}/languages"
README_FILENAMES = ("README.md", "readme.md", "Readme.md")


class GitHubRepoSource:
    """
    RepoSource backed by the GitHub REST API.

    A missing repository yields an empty language map and no README rather
    than an error; rate limits and server errors are retried by the policy.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        raw_url: str = "https://raw.githubusercontent.com",
        token: Optional[str] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()

        self._api_headers = {
            "Accept": GITHUB_API_ACCEPT_HEADER,
            "User-Agent": USER_AGENT,
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"
        self._raw_headers = {"User-Agent": USER_AGENT}

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def get_languages(self, repo_name: str) -> Dict[str, int]:
        """Fetch language -> byte count for a repository."""
        return await self.retry_policy.call(
            lambda: self._fetch_languages(repo_name), service=SERVICE_NAME
        )

    async def get_readme(self, repo_name: str) -> Optional[str]:
        """Fetch README text from the default branch, or None if absent."""
        branch = await self.retry_policy.call(
            lambda: self._fetch_default_branch(repo_name), service=SERVICE_NAME
        )
        if branch is None:
            return None

        for filename in README_FILENAMES:
            url = f"{self.raw_url}/{repo_name}/{branch}/{filename}"
            text = await self.retry_policy.call(
                lambda url=url: self._fetch_raw(url), service=SERVICE_NAME
            )
            if text is not None:
                logger.debug(f"Fetched README for {repo_name} ({len(text)} chars)")
                return text

        logger.info(f"No README found for {repo_name}")
        return None

    async def _fetch_languages(self, repo_name: str) -> Dict[str, int]:
        url = f"{self.api_url}{LANGUAGES_ENDPOINT_TEMPLATE.format(repo_name=repo_name)}"
        response = await send(self._client, "GET", url, service=SERVICE_NAME, headers=self._api_headers)
        if response.status_code == 404:
            logger.warning(f"Repository {repo_name} not found while fetching languages")
            return {}
        raise_for_status(response, SERVICE_NAME)

        data = parse_json(response, SERVICE_NAME)
        if not isinstance(data, dict):
            raise PermanentRemoteError(f"Unexpected languages payload for {repo_name}", service=SERVICE_NAME)

        languages: Dict[str, int] = {}
        for language, byte_count in data.items():
            if isinstance(byte_count, bool) or not isinstance(byte_count, (int, float)):
                raise PermanentRemoteError(
                    f"Non-numeric byte count for {language} in {repo_name}", service=SERVICE_NAME
                )
            languages[str(language)] = int(byte_count)
        return languages

    async def _fetch_default_branch(self, repo_name: str) -> Optional[str]:
        url = f"{self.api_url}{REPO_ENDPOINT_TEMPLATE.format(repo_name=repo_name)}"
        response = await send(self._client, "GET", url, service=SERVICE_NAME, headers=self._api_headers)
        if response.status_code == 404:
            logger.warning(f"Repository {repo_name} not found while fetching README")
            return None
        raise_for_status(response, SERVICE_NAME)

        data = parse_json(response, SERVICE_NAME)
        branch = data.get("default_branch") if isinstance(data, dict) else None
        if not branch:
            raise PermanentRemoteError(f"No default_branch for {repo_name}", service=SERVICE_NAME)
        return branch

    async def _fetch_raw(self, url: str) -> Optional[str]:
        response = await send(self._client, "GET", url, service=SERVICE_NAME, headers=self._raw_headers)
        if response.status_code == 404:
            return None
        raise_for_status(response, SERVICE_NAME)
        return response.text

    async def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()
