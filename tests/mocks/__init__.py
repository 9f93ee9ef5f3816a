"""
Mock implementations for testing.

In-memory stand-ins for the remote services and the trend store, so the
pipeline and the API can be exercised without network or database.
"""

from tests.mocks.collectors import (
    MockRepoSource,
    MockSummarizer,
    MockTrendSource,
)
from tests.mocks.storage import MockTrendStore

__all__ = [
    "MockTrendSource",
    "MockRepoSource",
    "MockSummarizer",
    "MockTrendStore",
]
