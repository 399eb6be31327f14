"""
GameSwipe Backend: Shared Schemas
=================================

What:  The camelCase base model plus the error envelope and health payloads
       shared by every router.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API models: snake_case attributes, camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorBody(BaseModel):
    code: str = Field(description="Machine-readable error code, e.g. ROOM_GONE")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Structured context, or null")


class ErrorResponse(BaseModel):
    """
    Standardized error envelope for all API errors.

    Example:
        {"error": {"code": "ROOM_NOT_FOUND", "message": "Room not found", "details": null}}
    """

    error: ErrorBody


class HealthResponse(BaseModel):
    ok: bool = Field(description="Always true while the process can serve requests")
    service: str = Field(description="Service name")
    time: datetime = Field(description="Current server time (UTC ISO 8601)")
