"""
Tests for the README summarizer.
"""

import json

import httpx
import pytest

from gitbrief.services.retry import RetryPolicy
from gitbrief.services.summarizer import (
    EMPTY_README_SUMMARY,
    Summarizer,
    SummaryError,
    truncate_readme,
)


async def no_sleep(_delay: float) -> None:
    return None


def completion(content: str) -> dict:
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


def make_summarizer(handler, max_attempts: int = 3, max_input_chars: int = 8000) -> Summarizer:
    return Summarizer(
        base_url="https://llm.test",
        api_key="sk-test",
        language="Korean",
        max_input_chars=max_input_chars,
        retry_policy=RetryPolicy(max_attempts=max_attempts, jitter=0.0, sleep=no_sleep),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_missing_api_key_rejected():
    with pytest.raises(ValueError):
        Summarizer(base_url="https://llm.test", api_key="")


def test_truncate_readme():
    assert truncate_readme("abcdef", 4) == "abcd"
    assert truncate_readme("abc", 4) == "abc"


@pytest.mark.asyncio
async def test_summarize_posts_chat_completion():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("  로켓을 만드는 프로젝트입니다.  "))

    summarizer = make_summarizer(handler)
    text = await summarizer.summarize("# Rocket\nBuilds rockets.", repo_name="acme/rocket")

    assert text == "로켓을 만드는 프로젝트입니다."
    assert captured["path"] == "/chat/completions"
    assert captured["auth"] == "Bearer sk-test"
    messages = captured["body"]["messages"]
    assert messages[0]["role"] == "system"
    assert "Korean" in messages[0]["content"]
    assert "acme/rocket" in messages[1]["content"]


@pytest.mark.asyncio
async def test_input_truncated_before_remote_call():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("ok"))

    summarizer = make_summarizer(handler, max_input_chars=10)
    await summarizer.summarize("x" * 10 + "y" * 500, repo_name="acme/big")

    user_content = captured["body"]["messages"][1]["content"]
    assert user_content.endswith("x" * 10)
    assert "y" not in user_content.split("\n\n", 1)[1]


@pytest.mark.asyncio
@pytest.mark.parametrize("readme", [None, "", "   \n\t"])
async def test_empty_readme_returns_sentinel_without_call(readme):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json=completion("unused"))

    summarizer = make_summarizer(handler)

    assert await summarizer.summarize(readme, repo_name="acme/empty") == EMPTY_README_SUMMARY
    assert calls == []


@pytest.mark.asyncio
async def test_rate_limit_retried_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(429, json={"error": "slow down"})
        return httpx.Response(200, json=completion("done"))

    summarizer = make_summarizer(handler)

    assert await summarizer.summarize("# Readme", repo_name="acme/rocket") == "done"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_transient_summary_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500, text="internal")

    summarizer = make_summarizer(handler, max_attempts=2)

    with pytest.raises(SummaryError) as exc_info:
        await summarizer.summarize("# Readme", repo_name="acme/rocket")

    assert exc_info.value.transient is True
    assert exc_info.value.status_code == 500
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_auth_failure_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(401, json={"error": "invalid key"})

    summarizer = make_summarizer(handler)

    with pytest.raises(SummaryError) as exc_info:
        await summarizer.summarize("# Readme", repo_name="acme/rocket")

    assert exc_info.value.transient is False
    assert len(calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        {"choices": [{"message": {"content": ""}}]},
        {"result": "no choices"},
    ],
)
async def test_malformed_response_fails_immediately(payload):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json=payload)

    summarizer = make_summarizer(handler)

    with pytest.raises(SummaryError):
        await summarizer.summarize("# Readme", repo_name="acme/rocket")
    assert len(calls) == 1
