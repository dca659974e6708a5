"""FAO FPMA retail/wholesale price archive."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from agriprice.core.config import settings
from agriprice.core.http import fetch_json
from agriprice.core.logging import get_logger
from agriprice.schemas.prices import DataSource
from .base import BaseSource

log = get_logger("ingestion.fpma")


def _series_endpoint() -> str:
    return f"{settings.FPMA_API_BASE.rstrip('/')}/FpmaSerieDomestic/"


def _price_endpoint(series_uuid: str) -> str:
    return f"{settings.FPMA_API_BASE.rstrip('/')}/FpmaSeriePrice/{series_uuid}/"


class FpmaSeriesSource(BaseSource):
    """Catalog-level metadata: every domestic price series the archive tracks."""

    name = DataSource.GLOBAL_RETAIL

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    async def fetch(self) -> List[Dict[str, Any]]:
        data = await fetch_json(_series_endpoint(), client=self.client)
        items = data.get("results", []) if isinstance(data, dict) else data

        results: List[Dict[str, Any]] = []
        for item in items:
            if not item.get("uuid") or not item.get("commodity_name"):
                continue
            results.append(
                {
                    "uuid": item["uuid"],
                    "commodity_name": item["commodity_name"].strip(),
                    "commodity_code": item.get("commodity_code"),
                    "country_code": item.get("iso3_country_code"),
                    "market_name": item.get("market_name"),
                    "price_type": item.get("price_type"),
                    "currency": item.get("currency") or "USD",
                    "unit": item.get("measure_unit_label") or "kg",
                }
            )
        log.info(f"Fetched {len(results)} series from FPMA")
        return results


class FpmaPriceSource(BaseSource):
    """Datapoints of a single FPMA series."""

    name = DataSource.GLOBAL_RETAIL

    def __init__(self, series_uuid: str, client: Optional[httpx.AsyncClient] = None):
        self.series_uuid = series_uuid
        self.client = client

    async def fetch(self) -> List[Dict[str, Any]]:
        data = await fetch_json(_price_endpoint(self.series_uuid), client=self.client)
        datapoints = data.get("datapoints", []) if isinstance(data, dict) else []

        results: List[Dict[str, Any]] = []
        for point in datapoints:
            ts = self._parse_date(point.get("date"))
            if ts is None or point.get("price_value") is None:
                continue
            results.append({"date": ts, "price": point["price_value"], "payload": point})
        return results

    @staticmethod
    def _parse_date(value: Any) -> Optional[datetime]:
        if not value:
            return None
        if isinstance(value, datetime):
            return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
