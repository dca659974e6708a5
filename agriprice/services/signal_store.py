"""Persistence of computed signals: one row per canonical key."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agriprice.core.errors import PersistenceConflict
from agriprice.core.logging import get_logger
from agriprice.models.signals import PriceSignal
from agriprice.schemas.prices import CanonicalKey
from agriprice.schemas.signals import ChangeStatus, PriceSignalData

log = get_logger("signal_store")

SaveOutcome = Literal["created", "updated"]


def _nullable_eq(column, value: Optional[str]):
    return column.is_(None) if value is None else column == value


class SignalStore:
    """Find-or-create/update of ``PriceSignal`` rows keyed by the canonical 5-tuple."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, key: CanonicalKey) -> Optional[PriceSignal]:
        stmt = select(PriceSignal).where(
            PriceSignal.global_product_id == key.product_id,
            _nullable_eq(PriceSignal.global_variety_id, key.variety_id),
            PriceSignal.global_country_id == key.country_id,
            PriceSignal.global_market_id == key.market_id,
            _nullable_eq(PriceSignal.global_price_stage_id, key.price_stage_id),
        )
        return self.db.execute(stmt).scalars().first()

    def save(self, signal: PriceSignalData) -> SaveOutcome:
        """Overwrite the stored signal for ``signal.key`` or create it.

        A concurrent create of the same key is rolled back and raised as
        ``PersistenceConflict``.
        """
        values = self._values(signal)
        existing = self.find(signal.key)

        if existing:
            for field, value in values.items():
                setattr(existing, field, value)
            self.db.commit()
            return "updated"

        row = PriceSignal(
            global_product_id=signal.key.product_id,
            global_variety_id=signal.key.variety_id,
            global_country_id=signal.key.country_id,
            global_market_id=signal.key.market_id,
            global_price_stage_id=signal.key.price_stage_id,
            **values,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise PersistenceConflict(f"Signal for {signal.key} was created concurrently") from exc
        return "created"

    @staticmethod
    def _values(signal: PriceSignalData) -> Dict[str, Any]:
        return {
            "current_price": signal.current_price,
            "current_price_date": signal.current_price_date,
            "previous_price": signal.previous_price,
            "month_ago_price": signal.month_ago_price,
            "three_month_ago_price": signal.three_month_ago_price,
            "six_month_ago_price": signal.six_month_ago_price,
            "year_ago_price": signal.year_ago_price,
            "mom": signal.mom,
            "three_month_change": signal.three_month_change,
            "six_month_change": signal.six_month_change,
            "year_change": signal.year_change,
            "mom_status": signal.mom_status.value,
            "three_month_status": signal.three_month_status.value,
            "six_month_status": signal.six_month_status.value,
            "year_status": signal.year_status.value,
            "data_source": signal.data_source.value,
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def list_signals(
        self,
        data_source: Optional[str] = None,
        product_id: Optional[str] = None,
        country_id: Optional[str] = None,
        mom_status: Optional[str] = None,
        changed_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[PriceSignal]:
        stmt = select(PriceSignal)

        if data_source:
            stmt = stmt.where(PriceSignal.data_source == data_source)
        if product_id:
            stmt = stmt.where(PriceSignal.global_product_id == product_id)
        if country_id:
            stmt = stmt.where(PriceSignal.global_country_id == country_id)
        if mom_status:
            stmt = stmt.where(PriceSignal.mom_status == mom_status)
        if changed_only:
            stmt = stmt.where(self._changed_clause())

        stmt = stmt.order_by(PriceSignal.current_price_date.desc(), PriceSignal.id).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    def summary(self) -> Dict[str, int]:
        total = self.db.execute(select(func.count()).select_from(PriceSignal)).scalar() or 0
        changed = (
            self.db.execute(select(func.count()).select_from(PriceSignal).where(self._changed_clause())).scalar()
            or 0
        )
        return {"total": total, "changed": changed, "stable": total - changed}

    @staticmethod
    def _changed_clause():
        stable = ChangeStatus.STABLE.value
        return or_(
            PriceSignal.mom_status != stable,
            PriceSignal.three_month_status != stable,
            PriceSignal.six_month_status != stable,
            PriceSignal.year_status != stable,
        )
