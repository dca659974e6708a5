"""Signal routes - read access to computed price signals."""

import time
import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from agriprice.api.deps import get_db
from agriprice.schemas.api import PriceSignalListResponse, PriceSignalOut, SignalSummaryResponse
from agriprice.services.signal_store import SignalStore

router = APIRouter(prefix="/price-signals", tags=["price-signals"])


@router.get("", response_model=PriceSignalListResponse)
def list_price_signals(
    data_source: Optional[Literal["NATIONAL", "REGIONAL", "GLOBAL_PRODUCER", "GLOBAL_RETAIL"]] = Query(None, description="Filter by data source"),
    product_id: Optional[str] = Query(None, description="Canonical product id"),
    country_id: Optional[str] = Query(None, description="Canonical country id"),
    mom_status: Optional[Literal["INCREASED", "DECREASED", "STABLE"]] = Query(None, description="Month-over-month status"),
    changed_only: bool = Query(False, description="Only signals that moved in any horizon"),
    limit: int = Query(50, ge=1, le=500, description="Number of records to return (max 500)"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db),
):
    """
    List stored price signals, newest current price first.

    Includes request metadata (request_id, latency_ms).
    """
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    rows = SignalStore(db).list_signals(
        data_source=data_source,
        product_id=product_id,
        country_id=country_id,
        mom_status=mom_status,
        changed_only=changed_only,
        limit=limit,
        offset=offset,
    )

    latency_ms = int((time.perf_counter() - start) * 1000)

    return PriceSignalListResponse(
        request_id=request_id,
        api_latency_ms=latency_ms,
        data=[PriceSignalOut.model_validate(r) for r in rows],
    )


@router.get("/summary", response_model=SignalSummaryResponse)
def price_signal_summary(db: Session = Depends(get_db)):
    """Counts of stored signals that moved in any horizon versus stable ones."""
    return SignalSummaryResponse(**SignalStore(db).summary())
