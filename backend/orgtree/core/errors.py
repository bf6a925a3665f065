"""Domain errors raised by the hierarchy services.

Each error carries the HTTP status and error identifier used by the API
layer when rendering an ``ErrorResponse``.
"""

from __future__ import annotations

from typing import Any


class HierarchyError(Exception):
    """Base class for business-rule failures."""

    status_code = 400
    error = "hierarchy_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(HierarchyError):
    """A unit, parent unit or member does not exist."""

    status_code = 404
    error = "not_found"


class ConflictError(HierarchyError):
    """Duplicate name/code, or a delete blocked by dependents."""

    status_code = 409
    error = "conflict"

    def __init__(
        self,
        message: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.reason = reason


class InvalidOperationError(HierarchyError):
    """A mutation that would break the tree shape."""

    status_code = 400
    error = "invalid_operation"


class SelfReferenceError(InvalidOperationError):
    error = "self_reference"


class CycleError(InvalidOperationError):
    error = "would_create_cycle"
