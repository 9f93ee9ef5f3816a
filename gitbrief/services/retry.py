"""
Retry policy for remote calls.

A single policy object parameterizes every remote call site: the trend
index, GitHub and the summarizer. Only TransientRemoteError is retried;
anything else propagates on the first attempt.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from gitbrief.collectors.interfaces import TransientRemoteError
from gitbrief.observability.metrics import remote_request_retries_counter

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Exponential backoff with jitter.

    The delay before attempt n+1 is min(max_delay, base_delay * 2**(n-1)),
    scaled by a random factor in [1 - jitter, 1 + jitter].

    Usage:
        policy = RetryPolicy(max_attempts=3, base_delay=1.0)
        data = await policy.call(lambda: client.fetch(url), service="github")
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.1

    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0 and 1")

    def compute_delay(self, attempt: int) -> float:
        """
        Backoff delay after a failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            Seconds to wait before the next attempt
        """
        delay = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        if self.jitter:
            delay *= random.uniform(1.0 - self.jitter, 1.0 + self.jitter)
        return max(0.0, delay)

    async def call(self, func: Callable[[], Awaitable[T]], service: str = "remote") -> T:
        """
        Run func, retrying transient failures.

        Args:
            func: Zero-argument coroutine factory, invoked once per attempt
            service: Service label for logs and metrics

        Returns:
            Result of the first successful attempt

        Raises:
            TransientRemoteError: If every attempt failed transiently
            Exception: Any non-transient error, on the attempt it occurred
        """
        last_error: Optional[TransientRemoteError] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func()
            except TransientRemoteError as e:
                last_error = e
                if attempt >= self.max_attempts:
                    break

                delay = self.compute_delay(attempt)
                logger.warning(
                    f"{service} transient failure (attempt {attempt}/{self.max_attempts}): "
                    f"{e}; retrying in {delay:.2f}s"
                )
                remote_request_retries_counter.labels(service=service).inc()
                await self.sleep(delay)

        logger.warning(f"{service} gave up after {self.max_attempts} attempts: {last_error}")
        raise last_error
