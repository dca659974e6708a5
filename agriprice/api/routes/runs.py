"""Run routes - job history for monitoring."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from agriprice.api.deps import get_db
from agriprice.models.runs import JobRun
from agriprice.schemas.api import RunOut

router = APIRouter(prefix="/runs", tags=["runs"])


@router.get("", response_model=list[RunOut])
def list_runs(
    job_name: Optional[str] = Query(None, description="price_signals, retail_catalog or retail_prices"),
    status: Optional[str] = Query(None, description="Filter by status (running, success, failure)"),
    limit: int = Query(10, ge=1, le=50, description="Number of runs to return"),
    db: Session = Depends(get_db),
):
    """Most recent runs first, with counts and error messages."""
    stmt = select(JobRun)
    if job_name:
        stmt = stmt.where(JobRun.job_name == job_name)
    if status:
        stmt = stmt.where(JobRun.status == status)
    stmt = stmt.order_by(JobRun.started_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())
