"""Prometheus-compatible metrics endpoint."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import Group
from app.monitoring import metrics
from app.monitoring.registry import registry


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=Response)
def export_metrics(db: Session = Depends(get_db)) -> Response:
    """Expose collected metrics for Prometheus scraping.

    The active session gauge is read from the database at scrape time so it
    reflects sessions started or ended by any process.
    """

    active = db.execute(
        select(func.count()).select_from(Group).where(Group.live_active.is_(True))
    ).scalar_one()
    metrics.live_sessions_active.set(active)
    payload = registry.render()
    return Response(content=payload, media_type="text/plain; version=0.0.4")
