"""Daily refresh of the currency table from ExchangeRate-API.

The provider quotes every rate against 1 USD, which is exactly what
``Currency.rate_to_usd`` stores, so rates are written without conversion.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from agriprice.core.config import settings
from agriprice.core.errors import CurrencySyncError, NetworkFailure
from agriprice.core.http import fetch_json
from agriprice.core.logging import get_logger
from agriprice.models.reference import Currency
from agriprice.models.runs import JobRun
from agriprice.services.normalizer import BASE_CURRENCY

log = get_logger("currency_service")

JOB_NAME = "currencies"

# Names for currencies the price sources actually quote in; others keep their code.
CURRENCY_NAMES: Dict[str, str] = {
    "AZN": "Azerbaijani Manat",
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "RUB": "Russian Ruble",
    "TRY": "Turkish Lira",
    "GEL": "Georgian Lari",
    "KZT": "Kazakhstani Tenge",
    "UZS": "Uzbek Som",
    "UAH": "Ukrainian Hryvnia",
    "IRR": "Iranian Rial",
    "CNY": "Chinese Yuan",
    "INR": "Indian Rupee",
    "BOB": "Bolivian Boliviano",
    "PEN": "Peruvian Sol",
    "KES": "Kenyan Shilling",
    "XOF": "CFA Franc BCEAO",
    "XAF": "CFA Franc BEAC",
}


class CurrencyRateSync:
    """Upserts ``Currency.rate_to_usd`` for every rate the provider returns."""

    def __init__(self, db: Session, client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.client = client

    async def sync(self) -> Dict[str, Any]:
        run = JobRun(job_name=JOB_NAME, status="running", records_processed=0)
        self.db.add(run)
        self.db.commit()

        try:
            try:
                data = await fetch_json(settings.EXCHANGE_RATE_API_URL, client=self.client)
            except NetworkFailure as exc:
                raise CurrencySyncError(f"Exchange rates unavailable: {exc}") from exc

            rates = self.parse_rates(data)
            created, updated = self._upsert_rates(rates)

            run.status = "success"
            run.records_processed = created + updated
            run.meta = {"created": created, "updated": updated, "provider_date": data.get("date")}
            run.ended_at = datetime.now(timezone.utc)
            self.db.commit()

            log.info(f"Currency rates refreshed | created={created} updated={updated}")
            return {"success": True, "created": created, "updated": updated, "total": created + updated}

        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            run.status = "failure"
            run.error_message = str(exc)
            run.ended_at = datetime.now(timezone.utc)
            self.db.add(run)
            self.db.commit()
            log.error(f"Currency rate sync failed: {exc}")
            raise

    @staticmethod
    def parse_rates(data: Any) -> Dict[str, float]:
        """Positive numeric rates keyed by upper-case code; USD pinned to 1."""
        raw = data.get("rates") if isinstance(data, Mapping) else None
        if not isinstance(raw, Mapping) or not raw:
            raise CurrencySyncError("Exchange rate response has no rates")

        rates: Dict[str, float] = {}
        for code, value in raw.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                log.warning(f"Ignoring rate {value!r} for {code}")
                continue
            rates[str(code).strip().upper()] = float(value)
        rates[BASE_CURRENCY] = 1.0
        return rates

    def _upsert_rates(self, rates: Mapping[str, float]) -> tuple[int, int]:
        existing = {c.code: c for c in self.db.execute(select(Currency)).scalars()}
        now = datetime.now(timezone.utc)
        created = 0
        updated = 0

        for code, rate in sorted(rates.items()):
            currency = existing.get(code)
            if currency is None:
                self.db.add(Currency(code=code, name=CURRENCY_NAMES.get(code, code), rate_to_usd=rate, updated_at=now))
                created += 1
                continue
            currency.rate_to_usd = rate
            currency.updated_at = now
            updated += 1

        self.db.commit()
        return created, updated
