"""Currency and unit normalization to USD per kilogram.

Conversion tables are loaded once at the start of a run and passed into
``normalize`` explicitly; nothing here keeps state between calls.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from agriprice.core.errors import UnknownCurrency, UnknownUnit
from agriprice.core.logging import get_logger
from agriprice.models.reference import Currency, Unit

log = get_logger("normalizer")

BASE_CURRENCY = "USD"
BASE_UNIT = "kg"

# Kilograms per unit. Liters are taken as kg-equivalent and dozen counts pieces.
STATIC_UNIT_FACTORS: Dict[str, float] = {
    "kg": 1,
    "1 kg": 1,
    "kilogram": 1,
    "100kg": 100,
    "100 kg": 100,
    "tonne": 1000,
    "ton": 1000,
    "mt": 1000,
    "g": 0.001,
    "gram": 0.001,
    "lb": 1 / 2.205,
    "lbs": 1 / 2.205,
    "pound": 1 / 2.205,
    "libra": 1 / 2.205,
    "liter": 1,
    "litre": 1,
    "dozen": 12,
    "spanish quintal": 46,
    "spanish quintal (46 kg)": 46,
    "bolivian arroba": 11.5,
    "bolivian arroba (11.5 kg)": 11.5,
}

_LEADING_KG = re.compile(r"(\d+(?:\.\d+)?)\s*kg")


@dataclass(frozen=True)
class ConversionTables:
    """Currency rates (units per 1 USD) and unit factors (kg per unit) for one run."""

    currency_rates: Mapping[str, float] = field(default_factory=dict)
    unit_factors: Mapping[str, float] = field(default_factory=lambda: dict(STATIC_UNIT_FACTORS))

    @classmethod
    def build(
        cls,
        currency_rates: Mapping[str, float],
        unit_factors: Optional[Mapping[str, float]] = None,
    ) -> "ConversionTables":
        rates = {code.upper(): rate for code, rate in currency_rates.items()}
        rates.setdefault(BASE_CURRENCY, 1.0)
        units = {code.strip().lower(): factor for code, factor in (unit_factors or {}).items()}
        # Stored rows only add codes; the static factors win where both define one
        # (the units table has carried inverse rates such as 100kg -> 0.01).
        units.update(STATIC_UNIT_FACTORS)
        return cls(currency_rates=rates, unit_factors=units)

    @classmethod
    def load(cls, db: Session) -> "ConversionTables":
        """Read active currencies and kg-based units from the database."""
        currencies = db.execute(select(Currency).where(Currency.is_active.is_(True))).scalars().all()
        units = db.execute(
            select(Unit).where(Unit.is_active.is_(True), Unit.base_unit == BASE_UNIT)
        ).scalars().all()

        tables = cls.build(
            {c.code: c.rate_to_usd for c in currencies},
            {u.code: u.conversion_rate for u in units},
        )
        log.info(
            f"Loaded {len(tables.currency_rates)} currency rates and {len(tables.unit_factors)} unit conversions"
        )
        return tables


def currency_rate(currency: str, rate_table: Mapping[str, float]) -> float:
    """Units of ``currency`` per 1 USD. USD itself is always 1."""
    code = (currency or "").strip().upper()
    rate = rate_table.get(code)
    if rate is None and code == BASE_CURRENCY:
        return 1.0
    if rate is None:
        raise UnknownCurrency(currency)
    return rate


def resolve_unit_factor(unit: str, unit_factors: Mapping[str, float], strict: bool = False) -> float:
    """Kilograms per ``unit``: exact match, then ``<n> kg`` pattern, then 1.

    With ``strict=True`` an unrecognized unit raises ``UnknownUnit`` instead
    of being taken as kg.
    """
    unit_key = (unit or "").strip().lower()

    factor = unit_factors.get(unit_key)
    if factor is not None:
        return factor

    match = _LEADING_KG.search(unit_key)
    if match:
        return float(match.group(1))

    if strict:
        raise UnknownUnit(unit)
    log.warning(f"Unknown unit {unit!r}; assuming kg")
    return 1.0


def normalize(
    price: float,
    currency: str,
    unit: str,
    rate_table: Mapping[str, float],
    unit_table: Mapping[str, float],
) -> Optional[float]:
    """Convert ``price`` in ``currency`` per ``unit`` into USD per kg.

    Returns ``None`` when the currency is unknown or a conversion factor is
    not positive; the caller drops the observation.
    """
    try:
        rate = currency_rate(currency, rate_table)
    except UnknownCurrency as exc:
        log.warning(str(exc))
        return None
    if rate <= 0:
        log.warning(f"Invalid rate {rate} for currency {currency}")
        return None

    factor = resolve_unit_factor(unit, unit_table)
    if factor <= 0:
        log.warning(f"Invalid conversion factor {factor} for unit {unit!r}")
        return None

    price_usd_per_kg = (price / rate) / factor
    if price_usd_per_kg < 0:
        return None
    return price_usd_per_kg


def normalize_with(tables: ConversionTables, price: float, currency: str, unit: str) -> Optional[float]:
    return normalize(price, currency, unit, tables.currency_rates, tables.unit_factors)
