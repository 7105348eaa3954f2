"""
Football Academy Backend — Shared Response Schemas
====================================================

What:  Envelope models used across routers (errors, health, simple acks).
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "permission_denied",
            "message": "Insufficient permissions",
            "details": {},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable confirmation")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer checks."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    database_latency_ms: Optional[float] = Field(
        default=None, description="Round-trip time of SELECT 1 (null when disconnected)"
    )
    uptime_seconds: float = Field(description="Seconds since service started")


# Reused by every router's `responses=` table
ERROR_RESPONSES = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Role or team does not allow this", "model": ErrorResponse},
}
