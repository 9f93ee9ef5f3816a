"""
Common API schemas used across endpoints.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Uniform response envelope shared by every endpoint."""

    success: bool = Field(True, description="Operation success status")
    data: Optional[Any] = Field(None, description="Response data")
    error: Optional[str] = Field(None, description="Error message when success is false")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": [],
                "error": None,
            }
        }
    )


def error_body(message: str) -> dict:
    """Envelope for a failed request."""
    return ApiResponse(success=False, data=None, error=message).model_dump()


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="ISO 8601 timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "version": "1.0.0",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        }
    )
