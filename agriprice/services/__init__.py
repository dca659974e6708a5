# Services package
from agriprice.services.catalog_service import CatalogService
from agriprice.services.currency_service import CurrencyRateSync
from agriprice.services.retail_sync_service import RetailPriceSync
from agriprice.services.signal_service import SignalService
from agriprice.services.signal_store import SignalStore

__all__ = [
    "CatalogService",
    "CurrencyRateSync",
    "RetailPriceSync",
    "SignalService",
    "SignalStore",
]
