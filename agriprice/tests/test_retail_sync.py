"""Incremental FPMA price sync tests"""

from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy.exc import IntegrityError

from agriprice.core.config import settings
from agriprice.ingestion.base import BaseSource
from agriprice.ingestion.fpma_source import FpmaPriceSource
from agriprice.models import Currency, GlobalProduct, JobRun, PriceSignal, RawPrice, SourceProduct, SourceSeries
from agriprice.services.retail_sync_service import RetailPriceSync
from agriprice.services.signal_service import SignalService

SINCE = datetime(2025, 3, 1, tzinfo=timezone.utc)


def datapoints(latest_price=1.6):
    return {
        "datapoints": [
            {"date": "2025-02-01T00:00:00Z", "price_value": 1.0},
            {"date": "2025-04-01", "price_value": 1.5},
            {"date": "2025-05-01T00:00:00Z", "price_value": latest_price},
            {"date": None, "price_value": 9.9},
            {"date": "2025-05-15", "price_value": None},
        ]
    }


def fpma_client(latest_price=1.6):
    def handler(request: httpx.Request) -> httpx.Response:
        if "s-apple-baku" in request.url.path:
            return httpx.Response(200, json=datapoints(latest_price))
        return httpx.Response(500, json={"detail": "boom"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def tracked_series(db_session, monkeypatch):
    monkeypatch.setattr(settings, "HTTP_RETRY_ATTEMPTS", 1)
    db_session.add(GlobalProduct(id="gp-alma", name="alma", name_en="Apple"))
    db_session.add(SourceProduct(id="sp-apples", source="GLOBAL_RETAIL", name="Apples", global_product_id="gp-alma"))
    db_session.add_all(
        [
            SourceSeries(
                id="ss-baku",
                source="GLOBAL_RETAIL",
                external_id="s-apple-baku",
                source_product_id="sp-apples",
                currency="AZN",
                unit="kg",
                global_country_id="country-az",
                global_market_id="market-baku",
                global_price_stage_id="retail",
            ),
            SourceSeries(
                id="ss-ganja",
                source="GLOBAL_RETAIL",
                external_id="s-apple-ganja",
                source_product_id="sp-apples",
                currency="AZN",
                unit="kg",
                global_country_id="country-az",
                global_market_id="market-ganja",
            ),
            SourceSeries(
                id="ss-retired",
                source="GLOBAL_RETAIL",
                external_id="s-retired",
                source_product_id="sp-apples",
                currency="AZN",
                unit="kg",
                is_active=False,
            ),
        ]
    )
    db_session.commit()
    return db_session


class TestFpmaPriceSource:
    """Datapoint parsing"""

    @pytest.mark.asyncio
    async def test_fetch_skips_incomplete_points(self):
        async with fpma_client() as client:
            points = await FpmaPriceSource("s-apple-baku", client=client).fetch()

        assert [p["price"] for p in points] == [1.0, 1.5, 1.6]
        assert all(p["date"].tzinfo is not None for p in points)

    def test_filter_incremental(self):
        records = [
            {"date": datetime(2025, 2, 1, tzinfo=timezone.utc)},
            {"date": SINCE},
            {"date": datetime(2025, 4, 1, tzinfo=timezone.utc)},
        ]
        assert len(BaseSource.filter_incremental(records, SINCE)) == 2
        assert len(BaseSource.filter_incremental(records, None)) == 3


class TestRetailPriceSync:
    """Series walk, upsert and error counting"""

    @pytest.mark.asyncio
    async def test_sync_writes_recent_prices(self, tracked_series):
        async with fpma_client() as client:
            result = await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)

        assert result == {"success": True, "series_updated": 1, "prices_written": 2, "errors": 1}

        rows = tracked_series.query(RawPrice).order_by(RawPrice.date).all()
        assert [r.price for r in rows] == [1.5, 1.6]
        assert all(r.source == "GLOBAL_RETAIL" for r in rows)
        assert rows[0].global_product_id == "gp-alma"
        assert rows[0].global_market_id == "market-baku"
        assert rows[0].global_price_stage_id == "retail"
        assert rows[0].currency == "AZN"

        run = tracked_series.query(JobRun).filter_by(job_name="retail_prices").one()
        assert run.status == "success"
        assert run.meta == {"series_updated": 1, "errors": 1}

    @pytest.mark.asyncio
    async def test_resync_overwrites(self, tracked_series):
        async with fpma_client(1.6) as client:
            await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)
        async with fpma_client(1.8) as client:
            await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)

        rows = tracked_series.query(RawPrice).order_by(RawPrice.date).all()
        assert [r.price for r in rows] == [1.5, 1.8]

    @pytest.mark.asyncio
    async def test_synced_prices_feed_signals(self, tracked_series):
        tracked_series.add(Currency(code="AZN", rate_to_usd=1.7))
        tracked_series.commit()
        async with fpma_client() as client:
            await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)

        result = SignalService(tracked_series).run(now=datetime(2025, 5, 5, tzinfo=timezone.utc))

        assert result.created == 1
        signal = tracked_series.query(PriceSignal).one()
        assert signal.data_source == "GLOBAL_RETAIL"
        assert signal.global_price_stage_id == "retail"
        assert signal.mom == pytest.approx(6.67)
        assert signal.mom_status == "INCREASED"

    @pytest.mark.asyncio
    async def test_duplicate_dates_in_one_payload_write_one_row(self, tracked_series):
        payload = {
            "datapoints": [
                {"date": "2025-05-01", "price_value": 1.6},
                {"date": "2025-05-01T00:00:00Z", "price_value": 1.7},
            ]
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if "s-apple-baku" in request.url.path:
                return httpx.Response(200, json=payload)
            return httpx.Response(500, json={"detail": "boom"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)

        assert result == {"success": True, "series_updated": 1, "prices_written": 1, "errors": 1}
        row = tracked_series.query(RawPrice).one()
        assert row.price == 1.7
        assert row.series_id == "ss-baku"

    @pytest.mark.asyncio
    async def test_write_error_counted_and_batch_continues(self, tracked_series, monkeypatch):
        original = RetailPriceSync._upsert_prices

        def flaky(self, series, points):
            if series.id == "ss-baku":
                raise IntegrityError("INSERT INTO raw_prices", {}, Exception("UNIQUE constraint failed"))
            return original(self, series, points)

        monkeypatch.setattr(RetailPriceSync, "_upsert_prices", flaky)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=datapoints())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await RetailPriceSync(tracked_series, client=client).sync(since=SINCE)

        assert result == {"success": True, "series_updated": 1, "prices_written": 2, "errors": 1}
        rows = tracked_series.query(RawPrice).all()
        assert {r.series_id for r in rows} == {"ss-ganja"}

        run = tracked_series.query(JobRun).filter_by(job_name="retail_prices").one()
        assert run.status == "success"

    @pytest.mark.asyncio
    async def test_unexpected_failure_marks_run_failed(self, tracked_series, monkeypatch):
        async def broken(self):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(FpmaPriceSource, "fetch", broken)

        with pytest.raises(RuntimeError):
            await RetailPriceSync(tracked_series).sync(since=SINCE)

        run = tracked_series.query(JobRun).filter_by(job_name="retail_prices").one()
        assert run.status == "failure"
        assert run.error_message == "parser exploded"
        assert run.ended_at is not None
