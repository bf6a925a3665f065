"""FastAPI dependencies wiring services to the request session."""

import hmac

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree.core.config import get_settings
from orgtree.core.database import get_db
from orgtree.services.audit_service import AuditService
from orgtree.services.org_unit_service import OrgUnitService
from orgtree.services.sql_store import SqlMemberDirectory, SqlUnitStore


async def get_org_unit_service(db: AsyncSession = Depends(get_db)) -> OrgUnitService:
    """Build an OrgUnitService bound to the request's session and transaction.

    Args:
        db: Database session

    Returns:
        OrgUnitService using the SQL store, member directory and audit trail
    """
    return OrgUnitService(
        store=SqlUnitStore(db),
        members=SqlMemberDirectory(db),
        audit=AuditService(db),
    )


def _scrape_token(authorization: str | None, x_metrics_token: str | None) -> str | None:
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return x_metrics_token


async def require_metrics_access(
    authorization: str | None = Header(default=None),
    x_metrics_token: str | None = Header(default=None, alias="X-Metrics-Token"),
) -> None:
    """Gate the metrics scrape in production.

    Outside production the endpoint is open. In production it is hidden
    (404) until ``METRICS_TOKEN`` is configured, and then requires that
    token as a bearer credential or ``X-Metrics-Token`` header (403).
    """
    settings = get_settings()
    if settings.environment != "production":
        return

    if not settings.metrics_token:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    token = _scrape_token(authorization, x_metrics_token)
    if not token or not hmac.compare_digest(token, settings.metrics_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
