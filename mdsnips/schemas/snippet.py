"""
mdsnips: Pydantic Request/Response Schemas
============================================

What:  The API contract for snippets: request bodies, responses, the search
       sort option and the shared error/health shapes.
How:   FastAPI validates request bodies against these models (rejecting
       out-of-range lengths before the store is called) and serializes
       responses through them using the camelCase aliases.

Exposure rules:
    - SnippetCreated is the ONLY model carrying update_key, returned once by
      POST /md.
    - SnippetResponse (get/update) and SnippetListItem (list/search) never
      carry it; SnippetListItem also omits the body.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

TITLE_MAX_LENGTH = 64
BODY_MAX_LENGTH = 64_000


# ══════════════════════════════════════════════════════════════════════════
# Search Options
# ══════════════════════════════════════════════════════════════════════════


class SortBy(str, Enum):
    """Sort order accepted by the search endpoint."""

    CREATE_DATE_ASC = "createDate_ASC"
    CREATE_DATE_DESC = "createDate_DESC"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateSnippetRequest(BaseModel):
    """Body of POST /md."""

    title: str = Field(
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Snippet title",
        examples=["Markdown Snippet"],
    )
    body: str = Field(
        min_length=1,
        max_length=BODY_MAX_LENGTH,
        description="Markdown body to save",
        examples=["# Markdown Snippet\nSome Text"],
    )


class UpdateSnippetRequest(BaseModel):
    """
    Body of PATCH /md.

    update_key is the capability token returned when the snippet was created;
    it is checked by the AccessGuard before the store is touched.
    """

    id: str = Field(min_length=1, description="Snippet id")
    update_key: str = Field(
        alias="updateKey",
        min_length=1,
        description="Update key returned at creation time",
    )
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(min_length=1, max_length=BODY_MAX_LENGTH)

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetResponse(BaseModel):
    """Full snippet as returned by GET /md/{id} and PATCH /md."""

    id: str = Field(description="Snippet id")
    title: str = Field(description="Snippet title")
    body: str = Field(description="Markdown body")
    create_date: datetime = Field(
        alias="createDate",
        description="When the snippet was created (UTC ISO 8601)",
    )

    model_config = {"from_attributes": True, "populate_by_name": True}


class SnippetCreated(SnippetResponse):
    """
    Response of POST /md.

    Carries the update key. This is the only moment the creator learns it;
    no other endpoint ever returns it again.
    """

    update_key: str = Field(
        alias="updateKey",
        description="Capability token required for later updates and deletes",
    )


class SnippetListItem(BaseModel):
    """Projection used by list and search: no body, no update key."""

    id: str = Field(description="Snippet id")
    title: str = Field(description="Snippet title")
    create_date: datetime = Field(alias="createDate", description="Creation timestamp (UTC)")

    model_config = {"from_attributes": True, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "unauthorized",
            "message": "Invalid Update Key",
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
