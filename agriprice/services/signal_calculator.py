"""Horizon-based price change signals.

Reference points are located at fixed day offsets from the moment of
computation, not from the series' own latest date, so the same series can
yield a different signal when computed on a different day.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from agriprice.schemas.prices import CanonicalKey, DataSource, NormalizedPoint, PriceSeries, as_utc
from agriprice.schemas.signals import ChangeStatus, PriceSignalData

THRESHOLD_PERCENT = 2.0
SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class Horizon:
    name: str
    min_days: int
    max_days: int


MONTH = Horizon("MONTH", 25, 45)
THREE_MONTH = Horizon("THREE_MONTH", 80, 100)
SIX_MONTH = Horizon("SIX_MONTH", 170, 190)
YEAR = Horizon("YEAR", 350, 380)

HORIZONS = (MONTH, THREE_MONTH, SIX_MONTH, YEAR)


def age_in_days(point: NormalizedPoint, now: datetime) -> float:
    return (as_utc(now) - as_utc(point.date)).total_seconds() / SECONDS_PER_DAY


def find_price_in_window(
    points: Sequence[NormalizedPoint],
    horizon: Horizon,
    now: datetime,
) -> Optional[NormalizedPoint]:
    """Youngest point whose age lies within ``[min_days, max_days]``."""
    in_window = [p for p in points if horizon.min_days <= age_in_days(p, now) <= horizon.max_days]
    if not in_window:
        return None
    return min(in_window, key=lambda p: age_in_days(p, now))


def round_change(value: float) -> float:
    """Two decimals, halves rounded toward positive infinity (-0.125 -> -0.12)."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_change(current: float, reference: Optional[float]) -> Optional[float]:
    if reference is None or reference == 0:
        return None
    return (current - reference) / reference * 100


def calculate_status(change: Optional[float]) -> ChangeStatus:
    # No reference point is reported the same as no movement.
    if change is None:
        return ChangeStatus.STABLE
    if change > THRESHOLD_PERCENT:
        return ChangeStatus.INCREASED
    if change < -THRESHOLD_PERCENT:
        return ChangeStatus.DECREASED
    return ChangeStatus.STABLE


def compute_signal(series: PriceSeries, now: Optional[datetime] = None) -> Optional[PriceSignalData]:
    """Signal for one series, or None if the series has no points."""
    if not series.points:
        return None
    now = now or datetime.now(timezone.utc)

    ordered = sorted(series.points, key=lambda p: (p.date, p.price_usd_per_kg), reverse=True)
    current = ordered[0]
    previous = ordered[1] if len(ordered) > 1 else None

    references = [find_price_in_window(ordered, h, now) for h in HORIZONS]
    reference_prices = [p.price_usd_per_kg if p else None for p in references]
    raw_changes = [calculate_change(current.price_usd_per_kg, ref) for ref in reference_prices]
    changes = [round_change(c) if c is not None else None for c in raw_changes]
    statuses = [calculate_status(c) for c in raw_changes]

    return PriceSignalData(
        key=series.key,
        data_source=series.data_source,
        current_price=current.price_usd_per_kg,
        current_price_date=as_utc(current.date),
        previous_price=previous.price_usd_per_kg if previous else None,
        month_ago_price=reference_prices[0],
        three_month_ago_price=reference_prices[1],
        six_month_ago_price=reference_prices[2],
        year_ago_price=reference_prices[3],
        mom=changes[0],
        three_month_change=changes[1],
        six_month_change=changes[2],
        year_change=changes[3],
        mom_status=statuses[0],
        three_month_status=statuses[1],
        six_month_status=statuses[2],
        year_status=statuses[3],
    )


def compute_signals(series: Iterable[PriceSeries], now: Optional[datetime] = None) -> List[PriceSignalData]:
    now = now or datetime.now(timezone.utc)
    signals = []
    for s in series:
        signal = compute_signal(s, now)
        if signal is not None:
            signals.append(signal)
    return signals


# Earlier sources win when two series end on the same date.
SOURCE_PRECEDENCE = (
    DataSource.NATIONAL,
    DataSource.REGIONAL,
    DataSource.GLOBAL_PRODUCER,
    DataSource.GLOBAL_RETAIL,
)


def latest_per_key(signals: Iterable[PriceSignalData]) -> List[PriceSignalData]:
    """One signal per canonical key: the one with the newest current price.

    Sources keep separate series but the store holds a single row per key.
    """
    best: Dict[CanonicalKey, PriceSignalData] = {}
    for signal in signals:
        current = best.get(signal.key)
        if current is None or _freshness(signal) > _freshness(current):
            best[signal.key] = signal
    return sorted(best.values(), key=lambda s: _freshness(s), reverse=True)


def _freshness(signal: PriceSignalData) -> Tuple[datetime, int]:
    return as_utc(signal.current_price_date), -SOURCE_PRECEDENCE.index(signal.data_source)
