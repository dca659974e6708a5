"""Cron routes - scheduled triggers guarded by the shared bearer secret."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agriprice.api.deps import get_db, verify_cron_secret
from agriprice.core.logging import get_logger
from agriprice.schemas.signals import SignalRunResult
from agriprice.services.catalog_service import CatalogService
from agriprice.services.currency_service import CurrencyRateSync
from agriprice.services.retail_sync_service import RetailPriceSync
from agriprice.services.signal_service import SignalService

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])
log = get_logger("cron_routes")


@router.api_route("/update-price-signals", methods=["GET", "POST"], response_model=SignalRunResult)
def update_price_signals(db: Session = Depends(get_db)):
    """
    Recompute every price signal from stored raw prices.

    Same library call as ``python -m agriprice.signals_entrypoint signals``;
    returns the run summary (total, created, updated, skipped, errors).
    """
    log.info("Price signal update triggered")
    try:
        return SignalService(db).run()
    except Exception as exc:  # noqa: BLE001
        log.error(f"Price signal update failed: {exc}")
        return SignalRunResult(success=False, message=str(exc))


@router.post("/retail-catalog")
async def sync_retail_catalog(db: Session = Depends(get_db)):
    """Fetch the FPMA series catalog and re-match retail product names."""
    try:
        return await CatalogService(db).sync_retail_catalog()
    except Exception as exc:  # noqa: BLE001
        log.error(f"Retail catalog sync failed: {exc}")
        return {"success": False, "error": str(exc)}


@router.post("/retail-prices")
async def sync_retail_prices(db: Session = Depends(get_db)):
    """Fetch recent datapoints for every tracked FPMA series."""
    try:
        return await RetailPriceSync(db).sync()
    except Exception as exc:  # noqa: BLE001
        log.error(f"Retail price sync failed: {exc}")
        return {"success": False, "error": str(exc)}


@router.api_route("/update-currencies", methods=["GET", "POST"])
async def update_currencies(db: Session = Depends(get_db)):
    """Refresh ``rate_to_usd`` for every currency from ExchangeRate-API."""
    log.info("Currency rate update triggered")
    try:
        return await CurrencyRateSync(db).sync()
    except Exception as exc:  # noqa: BLE001
        log.error(f"Currency rate update failed: {exc}")
        return {"success": False, "error": str(exc)}
