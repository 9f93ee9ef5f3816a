"""
HTTP helpers shared by the remote adapters.

Maps httpx failures and response statuses onto the remote error hierarchy
so the retry policy can tell transient failures from permanent ones.
"""

import time
from typing import Any

import httpx

from gitbrief.collectors.interfaces import PermanentRemoteError, TransientRemoteError
from gitbrief.observability.metrics import remote_request_duration


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    service: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a request, translating transport failures.

    Raises:
        TransientRemoteError: On timeout or connection failure
        PermanentRemoteError: On any other request failure (decoding, redirects)
    """
    # Renamed and transferred GitHub repositories answer with 301
    kwargs.setdefault("follow_redirects", True)
    start_time = time.time()
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise TransientRemoteError(f"{service} request timed out: {url}", service=service) from e
    except httpx.TransportError as e:
        raise TransientRemoteError(f"{service} transport error: {e}", service=service) from e
    except httpx.RequestError as e:
        # Undecodable bodies and redirect loops do not heal on retry
        raise PermanentRemoteError(f"{service} request failed: {e}", service=service) from e
    finally:
        remote_request_duration.labels(service=service).observe(time.time() - start_time)


def raise_for_status(response: httpx.Response, service: str) -> None:
    """
    Raise the matching remote error for a non-2xx response.

    429, 5xx and GitHub's exhausted-quota 403 are transient. Every other
    4xx (including auth failures) is permanent.
    """
    status = response.status_code
    if status < 400:
        return

    detail = response.text[:200] if response.content else ""
    message = f"{service} returned HTTP {status}: {detail}".strip()

    if status == 429 or status >= 500:
        raise TransientRemoteError(message, service=service, status_code=status)

    if status == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
        raise TransientRemoteError(message, service=service, status_code=status)

    raise PermanentRemoteError(message, service=service, status_code=status)


def parse_json(response: httpx.Response, service: str) -> Any:
    """
    Decode a JSON body.

    Raises:
        PermanentRemoteError: If the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise PermanentRemoteError(
            f"{service} returned malformed JSON", service=service, status_code=response.status_code
        ) from e
