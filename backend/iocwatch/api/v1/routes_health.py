import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from iocwatch.core.config import settings
from iocwatch.db.session import SessionLocal

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> dict:
    """
    Liveness plus a cheap DB round-trip. Missing API keys are reported,
    not treated as unhealthy; scans just fail per item until they're set.
    """
    db_ok = True
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        db_ok = False
    finally:
        db.close()

    return {
        "status": "ok" if db_ok else "degraded",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "database": "ok" if db_ok else "unreachable",
        "reputation_sources": {
            "virustotal": bool(settings.VIRUSTOTAL_API_KEY),
            "abuseipdb": bool(settings.ABUSEIPDB_API_KEY),
        },
    }
