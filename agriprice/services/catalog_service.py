"""Catalog sync: source product names -> canonical products.

Matching runs once per catalog sync, not per price point. The chosen link,
its score and its match type are persisted on the ``SourceProduct`` row so
the price pipeline can read canonical ids directly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from agriprice.core.errors import CatalogSyncError, NetworkFailure
from agriprice.core.logging import get_logger
from agriprice.ingestion.fpma_source import FpmaSeriesSource
from agriprice.models.catalog import GlobalProduct, SourceProduct, SourceSeries
from agriprice.models.runs import JobRun
from agriprice.schemas.matching import CandidateProduct, MatchType
from agriprice.schemas.prices import DataSource
from agriprice.services.product_matcher import resolve

log = get_logger("catalog_service")


class CatalogService:
    """Keeps source products linked to the canonical catalog."""

    def __init__(self, db: Session, client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.client = client

    # =========================================================================
    # MATCHING
    # =========================================================================
    def load_candidates(self) -> List[CandidateProduct]:
        products = self.db.execute(select(GlobalProduct)).scalars().all()
        return [CandidateProduct(id=p.id, local_name=p.name, local_name_en=p.name_en) for p in products]

    def match_products(self, source: Optional[DataSource] = None) -> Dict[str, Any]:
        """Re-match every source product that was not linked by hand.

        Idempotent: unchanged inputs reproduce the same links and scores.
        """
        candidates = self.load_candidates()
        stmt = select(SourceProduct).where(SourceProduct.is_manual_match.is_(False))
        if source:
            stmt = stmt.where(SourceProduct.source == source.value)
        source_products = self.db.execute(stmt.order_by(SourceProduct.id)).scalars().all()

        results: List[Dict[str, Any]] = []
        matched = 0
        for product in source_products:
            match = resolve(product.name, candidates)

            product.global_product_id = match.candidate_product_id
            product.match_score = match.score
            product.match_type = match.match_type.value

            if match.candidate_product_id:
                matched += 1
            else:
                log.debug(f"No match for {product.source} product {product.name!r}")

            results.append(
                {
                    "source_product_id": product.id,
                    "source_name": product.name,
                    "global_product_id": match.candidate_product_id,
                    "score": match.score,
                    "match_type": match.match_type.value,
                }
            )

        self.db.commit()
        log.info(f"Matched {matched}/{len(source_products)} source products")
        return {
            "total": len(source_products),
            "matched": matched,
            "unmatched": len(source_products) - matched,
            "results": results,
        }

    def set_manual_match(self, source_product_id: str, global_product_id: Optional[str]) -> SourceProduct:
        """Pin (or clear) a link by hand. Pinned links are left alone by ``match_products``."""
        product = self.db.get(SourceProduct, source_product_id)
        if product is None:
            raise LookupError(f"Source product {source_product_id} not found")
        if global_product_id is not None and self.db.get(GlobalProduct, global_product_id) is None:
            raise LookupError(f"Global product {global_product_id} not found")

        product.global_product_id = global_product_id
        product.match_score = 100 if global_product_id else None
        product.match_type = MatchType.DICTIONARY.value if global_product_id else None
        product.is_manual_match = global_product_id is not None
        self.db.commit()
        self.db.refresh(product)
        return product

    def get_unmatched(self, source: Optional[DataSource] = None) -> List[SourceProduct]:
        stmt = select(SourceProduct).where(SourceProduct.global_product_id.is_(None))
        if source:
            stmt = stmt.where(SourceProduct.source == source.value)
        return list(self.db.execute(stmt.order_by(SourceProduct.name)).scalars().all())

    # =========================================================================
    # RETAIL CATALOG SYNC - network, fatal on failure
    # =========================================================================
    async def sync_retail_catalog(self) -> Dict[str, Any]:
        """Pull the FPMA series list, register unseen products/series, then re-match."""
        run = JobRun(job_name="retail_catalog", status="running", records_processed=0)
        self.db.add(run)
        self.db.commit()

        try:
            try:
                series = await FpmaSeriesSource(client=self.client).fetch()
            except NetworkFailure as exc:
                raise CatalogSyncError(f"FPMA series catalog unavailable: {exc}") from exc

            new_products, new_series = self._register_series(series)
            match_result = self.match_products(DataSource.GLOBAL_RETAIL)

            run.status = "success"
            run.records_processed = len(series)
            run.meta = {
                "series_seen": len(series),
                "new_products": new_products,
                "new_series": new_series,
                "matched": match_result["matched"],
                "unmatched": match_result["unmatched"],
            }
            run.ended_at = datetime.now(timezone.utc)
            self.db.commit()
            log.info(f"Retail catalog synced | series={len(series)} new_products={new_products} new_series={new_series}")
            return {"success": True, **run.meta}

        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            run.status = "failure"
            run.error_message = str(exc)
            run.ended_at = datetime.now(timezone.utc)
            self.db.add(run)
            self.db.commit()
            log.error(f"Retail catalog sync failed: {exc}")
            raise

    def _register_series(self, series: List[Dict[str, Any]]) -> tuple[int, int]:
        source = DataSource.GLOBAL_RETAIL.value
        products = {
            p.name: p
            for p in self.db.execute(select(SourceProduct).where(SourceProduct.source == source)).scalars()
        }
        known_series = set(self.db.execute(select(SourceSeries.external_id)).scalars())

        new_products = 0
        new_series = 0
        for item in series:
            product = products.get(item["commodity_name"])
            if product is None:
                product = SourceProduct(
                    source=source,
                    name=item["commodity_name"],
                    external_code=item.get("commodity_code"),
                )
                self.db.add(product)
                self.db.flush()
                products[product.name] = product
                new_products += 1

            if item["uuid"] in known_series:
                continue
            self.db.add(
                SourceSeries(
                    source=source,
                    external_id=item["uuid"],
                    source_product_id=product.id,
                    currency=item["currency"],
                    unit=item["unit"],
                    country_code=item.get("country_code"),
                    market_name=item.get("market_name"),
                    price_type=item.get("price_type"),
                )
            )
            known_series.add(item["uuid"])
            new_series += 1

        self.db.commit()
        return new_products, new_series
