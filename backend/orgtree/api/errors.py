"""Rendering of domain errors as ``ErrorResponse`` bodies."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orgtree.core.errors import HierarchyError
from orgtree.schemas.errors import ErrorResponse


async def hierarchy_error_handler(request: Request, exc: HierarchyError) -> JSONResponse:
    """Map NotFound/Conflict/InvalidOperation to 404/409/400."""
    body = ErrorResponse(error=exc.error, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HierarchyError, hierarchy_error_handler)
