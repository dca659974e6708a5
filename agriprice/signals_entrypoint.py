"""Signals entrypoint - Standalone script for one-shot batch runs.

Usage:
    python -m agriprice.signals_entrypoint                    # Recompute price signals
    python -m agriprice.signals_entrypoint signals            # Same as above
    python -m agriprice.signals_entrypoint match-products     # Re-match source product names
    python -m agriprice.signals_entrypoint retail-catalog     # Sync FPMA series catalog, then match
    python -m agriprice.signals_entrypoint retail-prices      # Sync recent FPMA datapoints
    python -m agriprice.signals_entrypoint currencies         # Refresh USD exchange rates
"""

import asyncio
import sys
from typing import Any, Dict

from agriprice.core.db import SessionLocal
from agriprice.core.logging import get_logger
from agriprice.services.catalog_service import CatalogService
from agriprice.services.currency_service import CurrencyRateSync
from agriprice.services.retail_sync_service import RetailPriceSync
from agriprice.services.signal_service import SignalService

logger = get_logger("signals_entrypoint")

JOBS = ("signals", "match-products", "retail-catalog", "retail-prices", "currencies")


def run_signals() -> Dict[str, Any]:
    with SessionLocal() as db:
        return SignalService(db).run().model_dump()


def run_matching() -> Dict[str, Any]:
    with SessionLocal() as db:
        result = CatalogService(db).match_products()
        return {"success": True, **{k: v for k, v in result.items() if k != "results"}}


async def run_retail_catalog() -> Dict[str, Any]:
    with SessionLocal() as db:
        return await CatalogService(db).sync_retail_catalog()


async def run_retail_prices() -> Dict[str, Any]:
    with SessionLocal() as db:
        return await RetailPriceSync(db).sync()


async def run_currencies() -> Dict[str, Any]:
    with SessionLocal() as db:
        return await CurrencyRateSync(db).sync()


def main():
    """Main entry point for batch jobs."""
    job = sys.argv[1] if len(sys.argv) > 1 else "signals"
    if job not in JOBS:
        logger.error(f"Invalid job: {job}. Must be one of: {', '.join(JOBS)}")
        sys.exit(2)

    logger.info(f"Batch job '{job}' starting...")
    try:
        if job == "signals":
            result = run_signals()
        elif job == "match-products":
            result = run_matching()
        elif job == "retail-catalog":
            result = asyncio.run(run_retail_catalog())
        elif job == "retail-prices":
            result = asyncio.run(run_retail_prices())
        else:
            result = asyncio.run(run_currencies())
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Batch job '{job}' failed: {exc}")
        sys.exit(1)

    logger.info(f"Batch job '{job}' completed: {result}")

    if not result.get("success", False):
        sys.exit(1)

    return result


if __name__ == "__main__":
    main()
