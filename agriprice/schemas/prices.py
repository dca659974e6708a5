"""Typed price observations and the canonical series built from them."""

from __future__ import annotations

import datetime as dt
import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agriprice.core.errors import MissingLinkage, ObservationValidationError


class DataSource(str, Enum):
    NATIONAL = "NATIONAL"  # national ministry feed (AZ)
    REGIONAL = "REGIONAL"  # regional statistical office (EU)
    GLOBAL_PRODUCER = "GLOBAL_PRODUCER"  # FAO producer prices
    GLOBAL_RETAIL = "GLOBAL_RETAIL"  # FAO FPMA retail/wholesale monitoring


def as_utc(value: dt.datetime) -> dt.datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class CanonicalKey(BaseModel):
    """Identity of one logical time series across all sources."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    variety_id: Optional[str] = None
    country_id: str
    market_id: str
    price_stage_id: Optional[str] = None


class RawObservation(BaseModel):
    """A single source price row, validated at the ingestion boundary.

    Canonical references may still be missing (the row has not been linked
    yet); ``canonical_key()`` reports that as ``MissingLinkage``. Anything
    else that is wrong with the row is rejected on construction.
    """

    model_config = ConfigDict(frozen=True)

    source: DataSource
    date: dt.datetime
    price: float = Field(ge=0, allow_inf_nan=False)
    currency: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    product_ref: Optional[str] = None
    variety_ref: Optional[str] = None
    country_ref: Optional[str] = None
    market_ref: Optional[str] = None
    price_stage_ref: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def _reject_non_numeric(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            raise ValueError("price must be numeric")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("price must be finite")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_datetime(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("date is required")
        if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
            return dt.datetime.combine(value, dt.time.min, tzinfo=dt.timezone.utc)
        return value

    @field_validator("date")
    @classmethod
    def _date_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)

    @field_validator("currency", "unit")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @classmethod
    def parse(cls, data: dict[str, Any], row_id: Optional[str] = None) -> "RawObservation":
        """Build an observation or raise ``ObservationValidationError``."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ObservationValidationError(problems, row_id=row_id) from exc

    def canonical_key(self) -> CanonicalKey:
        missing = [
            name
            for name, ref in (
                ("product", self.product_ref),
                ("country", self.country_ref),
                ("market", self.market_ref),
            )
            if not ref
        ]
        if missing:
            raise MissingLinkage(missing)
        return CanonicalKey(
            product_id=self.product_ref,
            variety_id=self.variety_ref or None,
            country_id=self.country_ref,
            market_id=self.market_ref,
            price_stage_id=self.price_stage_ref or None,
        )


class NormalizedPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: dt.datetime
    price_usd_per_kg: float = Field(ge=0)


class PriceSeries(BaseModel):
    """All normalized points of one canonical key from one source."""

    key: CanonicalKey
    data_source: DataSource
    points: list[NormalizedPoint] = Field(default_factory=list)
