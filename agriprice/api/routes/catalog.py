"""Catalog routes - product matching and manual link overrides."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from agriprice.api.deps import get_db, verify_cron_secret
from agriprice.schemas.api import ManualMatchRequest, MatchRunResponse, SourceProductOut
from agriprice.schemas.prices import DataSource
from agriprice.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["catalog"])

SourceFilter = Optional[Literal["NATIONAL", "REGIONAL", "GLOBAL_PRODUCER", "GLOBAL_RETAIL"]]


@router.post("/match", response_model=MatchRunResponse, dependencies=[Depends(verify_cron_secret)])
def run_product_matching(
    source: SourceFilter = Query(None, description="Restrict matching to one source"),
    db: Session = Depends(get_db),
):
    """Re-match every source product not linked by hand to the canonical catalog."""
    return CatalogService(db).match_products(DataSource(source) if source else None)


@router.get("/unmatched", response_model=list[SourceProductOut])
def list_unmatched(
    source: SourceFilter = Query(None, description="Filter by source"),
    db: Session = Depends(get_db),
):
    """Source products that have no canonical link yet."""
    return CatalogService(db).get_unmatched(DataSource(source) if source else None)


@router.put(
    "/source-products/{source_product_id}/match",
    response_model=SourceProductOut,
    dependencies=[Depends(verify_cron_secret)],
)
def set_manual_match(
    source_product_id: str,
    body: ManualMatchRequest,
    db: Session = Depends(get_db),
):
    """Pin a source product to a canonical product, or clear the link with ``null``."""
    try:
        return CatalogService(db).set_manual_match(source_product_id, body.global_product_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
