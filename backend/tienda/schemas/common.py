"""
Tienda Services: Shared Response Schemas
==========================================

What:  Response shapes every service returns: the error envelope, the
       `{"ok": true}` acknowledgement and the health report.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body returned by the global exception handlers.

    Example:
        {
            "error": "conflict",
            "message": "Usuario ya existe",
            "details": null,
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class OkResponse(BaseModel):
    """Acknowledgement for deletes, which succeed whether or not a row matched."""
    ok: bool = Field(default=True)


class HealthResponse(BaseModel):
    """
    What:  Health check response for one service.
    Who:   Returned by GET /health on every service.
    """
    status: str = Field(description="Overall service status: healthy or unhealthy")
    service: str = Field(description="Service key, e.g. 'productos'")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
