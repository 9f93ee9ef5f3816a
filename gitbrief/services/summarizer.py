"""
README summarization via an OpenAI-compatible chat completions API.

The default deployment talks to DeepSeek and asks for a short summary in
the configured language (Korean by default).
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from gitbrief.collectors.http import parse_json, raise_for_status, send
from gitbrief.collectors.interfaces import (
    PermanentRemoteError,
    RemoteError,
    TransientRemoteError,
)
from gitbrief.observability.metrics import summaries_generated_counter
from gitbrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

SERVICE_NAME = "summarizer"
CHAT_COMPLETIONS_ENDPOINT = "/chat/completions"
DEFAULT_README_MAX_CHARS = 8000
DEFAULT_MAX_TOKENS = 300

# Returned without a remote call when the README has no content
EMPTY_README_SUMMARY = "README가 비어 있어 요약할 내용이 없습니다."

SYSTEM_PROMPT_TEMPLATE = """You are a technical documentation summarizer.
Your task is to summarize GitHub README content in {language}.
Focus on:
1. What the project does
2. Key features
3. Tech stack (if mentioned)

Rules:
- Keep the summary under 200 characters
- Use {language} only
- Be concise and informative
- Do not include markdown formatting
- Do not include links or code"""


class SummaryError(RemoteError):
    """Raised when no summary could be produced for a README."""

    def __init__(self, message: str, transient: bool = False, status_code: Optional[int] = None):
        super().__init__(message, service=SERVICE_NAME, status_code=status_code)
        self.transient = transient


def truncate_readme(text: str, max_chars: int) -> str:
    """Cut README text to at most max_chars characters."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars]


class Summarizer:
    """
    LLM-backed README summarizer.

    Features:
    - Deterministic input truncation before the remote call
    - Retry with exponential backoff for timeouts, 5xx and 429
    - Immediate failure for auth errors and malformed responses
    - Sentinel summary for empty READMEs, without a remote call

    Example:
        ```python
        summarizer = Summarizer(base_url="https://api.deepseek.com", api_key="sk-...")
        text = await summarizer.summarize(readme, repo_name="owner/repo")
        ```
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "deepseek-chat",
        language: str = "Korean",
        max_input_chars: int = DEFAULT_README_MAX_CHARS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = 60.0,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the summarizer.

        Args:
            base_url: Chat completions API base URL
            api_key: API key sent as a bearer token
            model: Model name
            language: Output language of summaries
            max_input_chars: README characters sent to the model
            max_tokens: Completion token limit
            timeout: Request timeout in seconds
            retry_policy: Backoff policy for transient failures
            client: Optional pre-built httpx client

        Raises:
            ValueError: If api_key is empty
        """
        if not api_key:
            raise ValueError("Summarizer API key required. Set DEEPSEEK_API_KEY.")

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.language = language
        self.max_input_chars = max_input_chars
        self.max_tokens = max_tokens
        self.retry_policy = retry_policy or RetryPolicy()

        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

        logger.info(f"Initialized Summarizer (model={model}, language={language})")

    def build_messages(self, readme: str, repo_name: str) -> List[Dict[str, str]]:
        user_content = (
            f"Summarize this README for the repository '{repo_name}' in {self.language}:\n\n"
            f"{truncate_readme(readme, self.max_input_chars)}"
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(language=self.language)},
            {"role": "user", "content": user_content},
        ]

    async def summarize(self, readme: Optional[str], repo_name: str = "") -> str:
        """
        Summarize README text.

        Args:
            readme: README content (None or blank yields the sentinel)
            repo_name: Repository name, used in the prompt and logs

        Returns:
            Summary text

        Raises:
            SummaryError: If the remote call fails permanently or retries run out
        """
        if readme is None or not readme.strip():
            summaries_generated_counter.labels(status="sentinel").inc()
            return EMPTY_README_SUMMARY

        messages = self.build_messages(readme, repo_name)

        try:
            summary = await self.retry_policy.call(
                lambda: self._complete(messages), service=SERVICE_NAME
            )
        except TransientRemoteError as e:
            summaries_generated_counter.labels(status="failure").inc()
            raise SummaryError(
                f"Summarizer unavailable for {repo_name}: {e}", transient=True, status_code=e.status_code
            ) from e
        except PermanentRemoteError as e:
            summaries_generated_counter.labels(status="failure").inc()
            raise SummaryError(
                f"Summarizer rejected {repo_name}: {e}", transient=False, status_code=e.status_code
            ) from e

        summaries_generated_counter.labels(status="success").inc()
        logger.info(f"Generated summary for {repo_name} ({len(summary)} chars)")
        return summary

    async def _complete(self, messages: List[Dict[str, str]]) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        response = await send(
            self._client,
            "POST",
            f"{self.base_url}{CHAT_COMPLETIONS_ENDPOINT}",
            service=SERVICE_NAME,
            headers=self._headers,
            json=payload,
        )
        raise_for_status(response, SERVICE_NAME)
        data = parse_json(response, SERVICE_NAME)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise PermanentRemoteError("Completion response has no message content", service=SERVICE_NAME) from e

        if not isinstance(content, str) or not content.strip():
            raise PermanentRemoteError("Completion returned empty content", service=SERVICE_NAME)
        return content.strip()

    async def close(self):
        """Close the HTTP client if this summarizer created it."""
        if self._owns_client:
            await self._client.aclose()
