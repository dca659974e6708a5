from agriprice.api.routes.catalog import router as catalog_router
from agriprice.api.routes.cron import router as cron_router
from agriprice.api.routes.health import router as health_router
from agriprice.api.routes.runs import router as runs_router
from agriprice.api.routes.signals import router as signals_router

__all__ = ["catalog_router", "cron_router", "health_router", "runs_router", "signals_router"]
