"""
Pydantic schemas for request and response bodies.

Request fields are all optional and loosely typed: the store is the only validator,
so whatever the client sends is forwarded untouched. Fields the client omits are
left out of the store payload rather than sent as null.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# === Request bodies ===


class StoreBody(BaseModel):
    """Base for bodies forwarded to the store."""

    model_config = ConfigDict(extra="ignore")

    def store_payload(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class IssueCreate(StoreBody):
    """Body of POST /api/videos/{video_id}/issues."""

    description: Any = Field(None, description="Free-text description of the issue")
    timestamp: Any = Field(None, description="Position within the video")
    severity: Any = Field(None, description="Severity label, e.g. 'low' or 'high'")


class IssueUpdate(IssueCreate):
    """Body of PUT /api/issues/{id}."""

    resolved: Any = Field(None, description="Whether the issue has been resolved")


# === Response bodies ===


class ErrorResponse(BaseModel):
    """Body returned with every 500."""

    error: str


class MessageResponse(BaseModel):
    """Plain confirmation body."""

    message: str


class HealthResponse(BaseModel):
    status: str
    store_configured: bool
