"""Currency and unit normalization tests"""

import pytest

from agriprice.core.errors import UnknownCurrency, UnknownUnit
from agriprice.models.reference import Currency, Unit
from agriprice.services.normalizer import (
    STATIC_UNIT_FACTORS,
    ConversionTables,
    currency_rate,
    normalize,
    normalize_with,
    resolve_unit_factor,
)

RATES = {"USD": 1.0, "AZN": 1.7, "EUR": 0.92}


class TestNormalize:
    """price / rate / factor, or None"""

    def test_usd_per_kg_is_unchanged(self):
        assert normalize(2.5, "USD", "kg", RATES, STATIC_UNIT_FACTORS) == 2.5

    def test_local_currency_divided_by_rate(self):
        assert normalize(1.7, "AZN", "kg", RATES, STATIC_UNIT_FACTORS) == pytest.approx(1.0)

    def test_currency_code_is_case_insensitive(self):
        assert normalize(1.7, "azn", "kg", RATES, STATIC_UNIT_FACTORS) == pytest.approx(1.0)

    def test_tonne_to_kg(self):
        assert normalize(1000, "USD", "tonne", RATES, STATIC_UNIT_FACTORS) == pytest.approx(1.0)

    def test_pound_to_kg(self):
        assert normalize(1, "USD", "lb", RATES, STATIC_UNIT_FACTORS) == pytest.approx(2.205)

    def test_rate_and_factor_combined(self):
        result = normalize(92, "EUR", "100 kg", RATES, STATIC_UNIT_FACTORS)
        assert result == pytest.approx(92 / 0.92 / 100)

    def test_unknown_currency_returns_none(self):
        assert normalize(10, "XXX", "kg", RATES, STATIC_UNIT_FACTORS) is None

    def test_usd_missing_from_table_uses_rate_one(self):
        assert normalize(3, "USD", "kg", {}, STATIC_UNIT_FACTORS) == 3

    def test_zero_rate_returns_none(self):
        assert normalize(10, "AZN", "kg", {"AZN": 0}, STATIC_UNIT_FACTORS) is None

    def test_non_positive_factor_returns_none(self):
        assert normalize(10, "USD", "crate", RATES, {"crate": 0}) is None

    def test_zero_price_is_valid(self):
        assert normalize(0, "USD", "kg", RATES, STATIC_UNIT_FACTORS) == 0


class TestUnitFactor:
    """Exact match, then '<n> kg' pattern, then 1"""

    def test_exact_match_is_case_insensitive(self):
        assert resolve_unit_factor("Tonne", STATIC_UNIT_FACTORS) == 1000

    def test_regex_fallback(self):
        assert resolve_unit_factor("15 kg", {}) == 15.0

    def test_regex_fallback_inside_label(self):
        assert resolve_unit_factor("Sack 2.5kg", STATIC_UNIT_FACTORS) == 2.5

    def test_unknown_unit_assumed_kg(self):
        assert resolve_unit_factor("bunch", STATIC_UNIT_FACTORS) == 1.0

    def test_local_measures(self):
        assert resolve_unit_factor("Spanish quintal (46 kg)", STATIC_UNIT_FACTORS) == 46
        assert resolve_unit_factor("Bolivian arroba", STATIC_UNIT_FACTORS) == 11.5


class TestConversionTables:
    """Tables built once per run"""

    def test_build_normalizes_codes(self):
        tables = ConversionTables.build({"azn": 1.7}, {" Box ": 5})
        assert tables.currency_rates["AZN"] == 1.7
        assert tables.currency_rates["USD"] == 1.0
        assert tables.unit_factors["box"] == 5
        assert tables.unit_factors["kg"] == 1

    def test_static_factors_win_over_stored_units(self):
        tables = ConversionTables.build({}, {"dozen": 0.6, "crate": 20})
        assert tables.unit_factors["dozen"] == 12
        assert tables.unit_factors["crate"] == 20

    def test_inverse_stored_rates_ignored_for_known_units(self, db_session):
        db_session.add_all(
            [
                Currency(code="AZN", rate_to_usd=1.7),
                Unit(code="100kg", base_unit="kg", conversion_rate=0.01),
                Unit(code="ton", base_unit="kg", conversion_rate=0.001),
                Unit(code="g", base_unit="kg", conversion_rate=1000),
            ]
        )
        db_session.commit()

        tables = ConversionTables.load(db_session)

        assert normalize_with(tables, 170, "AZN", "100kg") == pytest.approx(1.0)
        assert normalize_with(tables, 1700, "AZN", "ton") == pytest.approx(1.0)
        assert normalize_with(tables, 0.0017, "AZN", "g") == pytest.approx(1.0)

    def test_normalize_with_tables(self):
        tables = ConversionTables.build({"AZN": 1.7})
        assert normalize_with(tables, 3.4, "AZN", "kg") == pytest.approx(2.0)

    def test_load_reads_active_rows(self, db_session):
        db_session.add_all(
            [
                Currency(code="AZN", name="Azerbaijani manat", rate_to_usd=1.7),
                Currency(code="TRY", name="Turkish lira", rate_to_usd=32.0, is_active=False),
                Unit(code="sack", name_en="Sack", base_unit="kg", conversion_rate=50),
                Unit(code="bottle", name_en="Bottle", base_unit="l", conversion_rate=0.75),
            ]
        )
        db_session.commit()

        tables = ConversionTables.load(db_session)

        assert tables.currency_rates["AZN"] == 1.7
        assert "TRY" not in tables.currency_rates
        assert tables.unit_factors["sack"] == 50
        assert "bottle" not in tables.unit_factors


class TestStrictLookups:
    """Typed errors behind the permissive defaults"""

    def test_currency_rate(self):
        assert currency_rate("azn", RATES) == 1.7
        assert currency_rate("USD", {}) == 1.0

    def test_unknown_currency_raises(self):
        with pytest.raises(UnknownCurrency) as exc_info:
            currency_rate("XXX", RATES)
        assert exc_info.value.currency == "XXX"

    def test_strict_unit_raises(self):
        with pytest.raises(UnknownUnit):
            resolve_unit_factor("bunch", STATIC_UNIT_FACTORS, strict=True)

    def test_strict_unit_still_uses_pattern(self):
        assert resolve_unit_factor("bag 25 kg", {}, strict=True) == 25.0
