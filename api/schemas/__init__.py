"""
API schemas for request and response models.

This module defines Pydantic models used for API serialization.
"""

from api.schemas.collect import (
    ProgressEvent,
    RunStateEnvelope,
    RunStateResponse,
)
from api.schemas.common import (
    ApiResponse,
    HealthCheckResponse,
)
from api.schemas.trends import (
    LanguageShareResponse,
    LanguageTrendListResponse,
    LanguageTrendResponse,
    TrendEntryResponse,
    TrendListResponse,
)

__all__ = [
    # Common
    "ApiResponse",
    "HealthCheckResponse",
    # Collect
    "ProgressEvent",
    "RunStateResponse",
    "RunStateEnvelope",
    # Trends
    "LanguageShareResponse",
    "TrendEntryResponse",
    "TrendListResponse",
    "LanguageTrendResponse",
    "LanguageTrendListResponse",
]
