"""Error response schema shared by every endpoint."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Used for all error responses (4xx, 5xx) across the API.
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["not_found", "conflict", "would_create_cycle"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Org unit not found", "Cannot set a descendant unit as parent"],
    )
    details: Optional[dict] = Field(
        None,
        description="Additional error context (violation reason, offending ids, etc.)",
        examples=[{"reason": "has_children", "child_count": 2}],
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"error": "not_found", "message": "Parent org unit not found"},
                {
                    "error": "conflict",
                    "message": "Cannot delete org unit with child units",
                    "details": {"reason": "has_children", "child_count": 1},
                },
                {
                    "error": "self_reference",
                    "message": "Org unit cannot be its own parent",
                },
            ]
        }
    )
