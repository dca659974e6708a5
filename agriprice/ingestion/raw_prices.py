"""Read access to stored raw price rows as validated observations."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from agriprice.core.errors import ObservationValidationError
from agriprice.core.logging import get_logger
from agriprice.models.prices import RawPrice
from agriprice.schemas.prices import DataSource, RawObservation

log = get_logger("ingestion.raw_prices")


class RawPriceRepository:
    def __init__(self, db: Session):
        self.db = db

    def load_observations(
        self,
        since: datetime,
        sources: Optional[List[DataSource]] = None,
    ) -> Tuple[List[RawObservation], int]:
        """Observations dated on or after ``since`` plus the count of rejected rows."""
        stmt = select(RawPrice).where(RawPrice.date >= since)
        if sources:
            stmt = stmt.where(RawPrice.source.in_([s.value for s in sources]))
        stmt = stmt.order_by(RawPrice.date.desc(), RawPrice.id)

        observations: List[RawObservation] = []
        invalid = 0
        for row in self.db.execute(stmt).scalars():
            try:
                observations.append(self.to_observation(row))
            except ObservationValidationError as exc:
                invalid += 1
                log.warning(f"Rejected raw price: {exc}")

        log.info(f"Loaded {len(observations)} observations since {since.date()} (rejected={invalid})")
        return observations, invalid

    @staticmethod
    def to_observation(row: RawPrice) -> RawObservation:
        return RawObservation.parse(
            {
                "source": row.source,
                "date": row.date,
                "price": row.price,
                "currency": row.currency,
                "unit": row.unit,
                "product_ref": row.global_product_id,
                "variety_ref": row.global_variety_id,
                "country_ref": row.global_country_id,
                "market_ref": row.global_market_id,
                "price_stage_ref": row.global_price_stage_id,
            },
            row_id=str(row.id),
        )
