"""Group normalized observations into one series per canonical key and source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from agriprice.core.errors import MissingLinkage
from agriprice.core.logging import get_logger
from agriprice.schemas.prices import CanonicalKey, DataSource, NormalizedPoint, PriceSeries, RawObservation
from agriprice.services.normalizer import ConversionTables, normalize_with

log = get_logger("series_builder")

SeriesId = Tuple[CanonicalKey, DataSource]


@dataclass
class BuildStats:
    received: int = 0
    grouped: int = 0
    skipped_unlinked: int = 0
    dropped_unnormalized: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "received": self.received,
            "grouped": self.grouped,
            "skipped_unlinked": self.skipped_unlinked,
            "dropped_unnormalized": self.dropped_unnormalized,
        }


class SeriesBuilder:
    """Accumulates points per (canonical key, source).

    Points from different sources never share a series, even when their
    canonical keys are equal.
    """

    def __init__(self) -> None:
        self._series: Dict[SeriesId, List[NormalizedPoint]] = {}
        self.stats = BuildStats()

    def add(self, observation: RawObservation, price_usd_per_kg: float) -> bool:
        """Add an already-normalized observation. Returns False if it was skipped."""
        self.stats.received += 1
        try:
            key = observation.canonical_key()
        except MissingLinkage as exc:
            self.stats.skipped_unlinked += 1
            log.debug(f"Skipping {observation.source.value} row dated {observation.date.date()}: {exc}")
            return False

        self._series.setdefault((key, observation.source), []).append(
            NormalizedPoint(date=observation.date, price_usd_per_kg=price_usd_per_kg)
        )
        self.stats.grouped += 1
        return True

    def series(self) -> List[PriceSeries]:
        return [
            PriceSeries(key=key, data_source=source, points=list(points))
            for (key, source), points in self._series.items()
        ]


def build_series(
    observations: Iterable[RawObservation],
    tables: ConversionTables,
) -> Tuple[List[PriceSeries], BuildStats]:
    """Normalize each observation and group the survivors into series."""
    builder = SeriesBuilder()

    for obs in observations:
        price = normalize_with(tables, obs.price, obs.currency, obs.unit)
        if price is None:
            builder.stats.received += 1
            builder.stats.dropped_unnormalized += 1
            continue
        builder.add(obs, price)

    series = builder.series()
    log.info(
        f"Built {len(series)} series | grouped={builder.stats.grouped} "
        f"unlinked={builder.stats.skipped_unlinked} unnormalized={builder.stats.dropped_unnormalized}"
    )
    return series, builder.stats
