"""Incremental price sync for tracked FPMA retail/wholesale series.

A series whose datapoints cannot be fetched after all retries, or cannot be
written, is counted as an error and skipped; the rest of the batch carries on.
Anything else marks the run failed and propagates.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from agriprice.core.config import settings
from agriprice.core.errors import NetworkFailure
from agriprice.core.logging import get_logger
from agriprice.ingestion.fpma_source import FpmaPriceSource
from agriprice.models.catalog import SourceSeries
from agriprice.models.prices import RawPrice
from agriprice.models.runs import JobRun
from agriprice.schemas.prices import DataSource, as_utc

log = get_logger("retail_sync")


class RetailPriceSync:
    def __init__(self, db: Session, client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.client = client

    async def sync(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        since = since or datetime.now(timezone.utc) - timedelta(days=30 * settings.RETAIL_SYNC_MONTHS)
        run = JobRun(job_name="retail_prices", status="running", records_processed=0)
        self.db.add(run)
        self.db.commit()

        try:
            series_list = (
                self.db.execute(
                    select(SourceSeries)
                    .options(joinedload(SourceSeries.source_product))
                    .where(SourceSeries.is_active.is_(True), SourceSeries.source == DataSource.GLOBAL_RETAIL.value)
                    .order_by(SourceSeries.external_id)
                )
                .scalars()
                .all()
            )
            log.info(f"Syncing {len(series_list)} FPMA series since {since.date()}")

            series_updated = 0
            prices_written = 0
            errors = 0
            for series in series_list:
                external_id = series.external_id
                try:
                    points = await FpmaPriceSource(external_id, client=self.client).fetch()
                except NetworkFailure as exc:
                    errors += 1
                    log.warning(f"Skipping series {external_id}: {exc}")
                    continue

                recent = FpmaPriceSource.filter_incremental(points, since)
                try:
                    prices_written += self._upsert_prices(series, recent)
                except SQLAlchemyError as exc:
                    self.db.rollback()
                    errors += 1
                    log.error(f"Error writing prices for series {external_id}: {exc}")
                    continue
                series_updated += 1

            run.status = "success"
            run.records_processed = prices_written
            run.meta = {"series_updated": series_updated, "errors": errors}
            run.ended_at = datetime.now(timezone.utc)
            self.db.commit()

            log.info(f"FPMA sync complete | series={series_updated} prices={prices_written} errors={errors}")
            return {
                "success": True,
                "series_updated": series_updated,
                "prices_written": prices_written,
                "errors": errors,
            }

        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            run.status = "failure"
            run.error_message = str(exc)
            run.ended_at = datetime.now(timezone.utc)
            self.db.add(run)
            self.db.commit()
            log.error(f"FPMA price sync failed: {exc}")
            raise

    def _upsert_prices(self, series: SourceSeries, points: List[Dict[str, Any]]) -> int:
        """Write one row per (series, date); returns the number of distinct dates written."""
        existing = {
            as_utc(row.date).replace(tzinfo=None): row
            for row in self.db.execute(select(RawPrice).where(RawPrice.series_id == series.id)).scalars()
        }
        product = series.source_product
        written = set()

        for point in points:
            day = as_utc(point["date"]).replace(tzinfo=None)
            row = existing.get(day)
            if row is None:
                row = RawPrice(source=DataSource.GLOBAL_RETAIL.value, series_id=series.id, date=point["date"])
                self.db.add(row)
                existing[day] = row
            row.price = point["price"]
            row.currency = series.currency
            row.unit = series.unit
            row.global_product_id = product.global_product_id if product else None
            row.global_variety_id = series.global_variety_id
            row.global_country_id = series.global_country_id
            row.global_market_id = series.global_market_id
            row.global_price_stage_id = series.global_price_stage_id
            written.add(day)

        self.db.commit()
        return len(written)
