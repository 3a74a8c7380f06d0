"""
Taskboard Backend — Shared Schemas
====================================

What:  The camelCase base model plus error and health payloads.
How:   `CamelModel` aliases snake_case attributes to camelCase on the wire
       (user_id ↔ userId, page_size ↔ pageSize) and accepts either on input.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(BaseModel):
    """One entry of a 422 response body."""

    field: str = Field(description="Public (camelCase) name of the offending field")
    message: str = Field(description="Human-readable reason")


class MessageResponse(BaseModel):
    """
    Body of 404 / 415 / 500 responses.

    Example:
        {"message": "user with ID '7' was not found", "error": "not_found", "requestId": "a1b2c3d4"}
    """

    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(default=None, description="Machine-readable error code")
    request_id: Optional[str] = Field(
        default=None, alias="requestId", description="Request correlation ID"
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
