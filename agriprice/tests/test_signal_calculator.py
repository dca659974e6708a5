"""Horizon signal computation tests"""

from datetime import date, datetime, timedelta, timezone

import pytest

from agriprice.schemas.prices import CanonicalKey, DataSource, NormalizedPoint, PriceSeries, RawObservation
from agriprice.schemas.signals import ChangeStatus, PriceSignalData
from agriprice.services.normalizer import ConversionTables
from agriprice.services.series_builder import build_series
from agriprice.services.signal_calculator import (
    MONTH,
    THREE_MONTH,
    YEAR,
    calculate_change,
    calculate_status,
    compute_signal,
    compute_signals,
    find_price_in_window,
    latest_per_key,
    round_change,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)
KEY = CanonicalKey(product_id="prod-apple", country_id="country-az", market_id="market-baku")


def point(age_days, price):
    return NormalizedPoint(date=NOW - timedelta(days=age_days), price_usd_per_kg=price)


def series(*points):
    return PriceSeries(key=KEY, data_source=DataSource.NATIONAL, points=list(points))


class TestWindows:
    """Reference point lookup"""

    def test_ages_10_27_95_400(self):
        points = [point(10, 110), point(27, 100), point(95, 120), point(400, 90)]

        assert find_price_in_window(points, MONTH, NOW).price_usd_per_kg == 100
        assert find_price_in_window(points, THREE_MONTH, NOW).price_usd_per_kg == 120
        assert find_price_in_window(points, YEAR, NOW) is None

    def test_youngest_point_in_window_wins(self):
        points = [point(40, 1.0), point(30, 2.0), point(44, 3.0)]
        assert find_price_in_window(points, MONTH, NOW).price_usd_per_kg == 2.0

    def test_window_bounds_inclusive(self):
        assert find_price_in_window([point(25, 1.0)], MONTH, NOW) is not None
        assert find_price_in_window([point(45, 1.0)], MONTH, NOW) is not None
        assert find_price_in_window([point(46, 1.0)], MONTH, NOW) is None


class TestChangeAndStatus:
    """Percent change, rounding and thresholds"""

    def test_change(self):
        assert calculate_change(110, 100) == pytest.approx(10.0)

    def test_no_reference(self):
        assert calculate_change(110, None) is None
        assert calculate_change(110, 0) is None

    def test_round_halves_toward_positive_infinity(self):
        assert round_change(0.125) == 0.13
        assert round_change(-0.125) == -0.12
        assert round_change(-8.33333) == -8.33

    @pytest.mark.parametrize(
        "change,status",
        [
            (2.0, ChangeStatus.STABLE),
            (2.01, ChangeStatus.INCREASED),
            (-2.0, ChangeStatus.STABLE),
            (-2.01, ChangeStatus.DECREASED),
            (0.0, ChangeStatus.STABLE),
            (None, ChangeStatus.STABLE),
        ],
    )
    def test_status_boundaries(self, change, status):
        assert calculate_status(change) == status


class TestComputeSignal:
    """Full signal for one series"""

    def test_signal_fields(self):
        signal = compute_signal(series(point(10, 110), point(27, 100), point(95, 120), point(400, 90)), NOW)

        assert signal.current_price == 110
        assert signal.current_price_date == NOW - timedelta(days=10)
        assert signal.previous_price == 100
        assert signal.month_ago_price == 100
        assert signal.mom == 10.0
        assert signal.mom_status == ChangeStatus.INCREASED
        assert signal.three_month_ago_price == 120
        assert signal.three_month_change == -8.33
        assert signal.three_month_status == ChangeStatus.DECREASED
        assert signal.six_month_ago_price is None
        assert signal.six_month_change is None
        assert signal.six_month_status == ChangeStatus.STABLE
        assert signal.year_ago_price is None
        assert signal.year_status == ChangeStatus.STABLE

    def test_status_uses_unrounded_change(self):
        signal = compute_signal(series(point(1, 102.004), point(30, 100)), NOW)
        assert signal.mom == 2.0
        assert signal.mom_status == ChangeStatus.INCREASED

    def test_single_point(self):
        signal = compute_signal(series(point(3, 5.0)), NOW)
        assert signal.previous_price is None
        assert signal.mom is None
        assert signal.mom_status == ChangeStatus.STABLE

    def test_empty_series(self):
        assert compute_signal(series(), NOW) is None
        assert compute_signals([series()], NOW) == []

    def test_idempotent(self):
        s = series(point(10, 110), point(27, 100), point(95, 120))
        first = compute_signal(s, NOW).model_dump_json()
        second = compute_signal(s, NOW).model_dump_json()
        assert first == second

    def test_input_order_irrelevant(self):
        points = [point(27, 100), point(10, 110), point(95, 120)]
        forward = compute_signal(series(*points), NOW)
        backward = compute_signal(series(*reversed(points)), NOW)
        assert forward == backward


class TestLatestPerKey:
    """One signal per canonical key across sources"""

    def signal(self, source, age_days, price):
        return PriceSignalData(
            key=KEY,
            data_source=source,
            current_price=price,
            current_price_date=NOW - timedelta(days=age_days),
        )

    def test_fresher_source_wins_regardless_of_order(self):
        national = self.signal(DataSource.NATIONAL, 1, 2.0)
        retail = self.signal(DataSource.GLOBAL_RETAIL, 60, 1.0)

        assert latest_per_key([national, retail]) == [national]
        assert latest_per_key([retail, national]) == [national]

    def test_newer_retail_beats_older_national(self):
        national = self.signal(DataSource.NATIONAL, 40, 2.0)
        retail = self.signal(DataSource.GLOBAL_RETAIL, 2, 1.0)

        assert latest_per_key([national, retail]) == [retail]

    def test_same_date_falls_back_to_source_order(self):
        producer = self.signal(DataSource.GLOBAL_PRODUCER, 5, 3.0)
        regional = self.signal(DataSource.REGIONAL, 5, 4.0)

        assert latest_per_key([producer, regional]) == [regional]

    def test_distinct_keys_all_kept(self):
        baku = self.signal(DataSource.NATIONAL, 1, 2.0)
        ganja = baku.model_copy(update={"key": KEY.model_copy(update={"market_id": "market-ganja"})})

        assert len(latest_per_key([baku, ganja])) == 2


class TestEndToEnd:
    """AZN observations through normalize, group and compute"""

    def test_azn_month_over_month(self):
        base = {
            "source": "NATIONAL",
            "currency": "AZN",
            "unit": "kg",
            "product_ref": "prod-apple",
            "country_ref": "country-az",
            "market_ref": "market-baku",
        }
        observations = [
            RawObservation.parse({**base, "date": date(2025, 5, 5), "price": 1.00}),
            RawObservation.parse({**base, "date": date(2025, 6, 1), "price": 1.87}),
        ]

        built, _ = build_series(observations, ConversionTables.build({"AZN": 1.7}))
        (signal,) = compute_signals(built, NOW)

        assert signal.current_price == pytest.approx(1.10)
        assert signal.month_ago_price == pytest.approx(0.588, abs=1e-3)
        assert signal.mom == pytest.approx(87.0, abs=0.1)
        assert signal.mom_status == ChangeStatus.INCREASED
