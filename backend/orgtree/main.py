"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orgtree.api.errors import register_error_handlers
from orgtree.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from orgtree.api.routes import metrics, org_units
from orgtree.core.config import get_settings
from orgtree.core.structured_logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Org Unit Hierarchy API",
    description="Department tree management with hierarchy integrity checks",
    version="1.0.0",
    docs_url="/api/docs" if settings.docs_enabled else None,
    redoc_url="/api/redoc" if settings.docs_enabled else None,
    openapi_url="/api/openapi.json" if settings.docs_enabled else None,
)

# Middleware configuration (order matters - applied in reverse order)
# 1. Request logging (outermost - logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

register_error_handlers(app)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(org_units.router, prefix="/api/org-units", tags=["org-units"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])
