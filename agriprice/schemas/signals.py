"""Computed trend signals and run summaries."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from agriprice.schemas.prices import CanonicalKey, DataSource


class ChangeStatus(str, Enum):
    INCREASED = "INCREASED"
    DECREASED = "DECREASED"
    STABLE = "STABLE"


class PriceSignalData(BaseModel):
    """Trend of one canonical series over the four standard horizons."""

    model_config = ConfigDict(frozen=True)

    key: CanonicalKey
    data_source: DataSource

    current_price: float
    current_price_date: dt.datetime
    previous_price: Optional[float] = None

    month_ago_price: Optional[float] = None
    three_month_ago_price: Optional[float] = None
    six_month_ago_price: Optional[float] = None
    year_ago_price: Optional[float] = None

    mom: Optional[float] = None
    three_month_change: Optional[float] = None
    six_month_change: Optional[float] = None
    year_change: Optional[float] = None

    mom_status: ChangeStatus = ChangeStatus.STABLE
    three_month_status: ChangeStatus = ChangeStatus.STABLE
    six_month_status: ChangeStatus = ChangeStatus.STABLE
    year_status: ChangeStatus = ChangeStatus.STABLE


class SignalRunResult(BaseModel):
    """Summary returned by both the one-shot run and the cron endpoint."""

    success: bool
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    message: Optional[str] = None
