from fastapi import FastAPI


from iocwatch.api.v1.routes_health import router as health_router
from iocwatch.api.v1.routes_watchlist import router as watchlist_router
from iocwatch.api.v1.routes_scan import router as scan_router
from iocwatch.api.v1.routes_alerts import router as alerts_router

from iocwatch.db.init_db import init_db
from iocwatch.core.config import settings
from iocwatch.core.logging_config import configure_logging


app = FastAPI(
    title="IOC Watchlist Service",
    version="0.1.0",
    description="Watchlist of indicators of compromise, periodic reputation re-scans and change alerts.",
)

@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    # Create DB tables if they don't exist (dev only)
    init_db()

@app.get("/", tags=["root"])
async def root() -> dict:
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


# API v1
app.include_router(health_router, prefix="/api/v1")
app.include_router(watchlist_router, prefix="/api/v1")
app.include_router(scan_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")
