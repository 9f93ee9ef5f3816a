"""
Remote adapters for the trend index and per-repository metadata.
"""

from gitbrief.collectors.interfaces import (
    PermanentRemoteError,
    RemoteError,
    RepoSource,
    TransientRemoteError,
    TrendSource,
)

__all__ = [
    "TrendSource",
    "RepoSource",
    "RemoteError",
    "TransientRemoteError",
    "PermanentRemoteError",
]
