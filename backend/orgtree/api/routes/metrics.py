"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from orgtree.api.deps import require_metrics_access

router = APIRouter()


@router.get(
    "/metrics",
    include_in_schema=False,
    summary="Prometheus metrics",
    dependencies=[Depends(require_metrics_access)],
)
async def metrics_endpoint() -> Response:
    """HTTP and hierarchy metrics in the Prometheus text format."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
