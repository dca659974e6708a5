"""Error taxonomy for the price engine.

Soft errors (unknown currency, missing linkage, invalid rows, persistence
conflicts) are counted by the batch that hits them. ``CatalogSyncError`` and
``CurrencySyncError`` are the only failures that abort a whole run.
"""

from __future__ import annotations

from typing import Optional


class PriceEngineError(Exception):
    """Base class for all engine errors."""


class UnknownCurrency(PriceEngineError):
    def __init__(self, currency: str):
        super().__init__(f"Unknown currency: {currency!r}")
        self.currency = currency


class UnknownUnit(PriceEngineError):
    def __init__(self, unit: str):
        super().__init__(f"Unknown unit: {unit!r}")
        self.unit = unit


class MissingLinkage(PriceEngineError):
    """Observation is not linked to a canonical product, country or market."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing canonical linkage: {', '.join(missing)}")
        self.missing = missing


class ObservationValidationError(PriceEngineError):
    """Raw row rejected at the ingestion boundary."""

    def __init__(self, message: str, row_id: Optional[str] = None):
        super().__init__(message if row_id is None else f"row {row_id}: {message}")
        self.row_id = row_id


class NetworkFailure(PriceEngineError):
    """Upstream HTTP call still failing after all retry attempts."""

    def __init__(self, url: str, cause: BaseException):
        super().__init__(f"Request to {url} failed: {cause}")
        self.url = url
        self.cause = cause


class CatalogSyncError(PriceEngineError):
    """Catalog-level metadata could not be fetched; fatal to the run."""


class CurrencySyncError(PriceEngineError):
    """Exchange rates could not be fetched or parsed; fatal to the rate refresh."""


class PersistenceConflict(PriceEngineError):
    """A concurrent writer created the same signal row first."""
