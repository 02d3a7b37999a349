# backend/iocwatch/db/init_db.py

from iocwatch.db.session import engine
from iocwatch.db.base_class import Base

# Import models so they are registered with Base.metadata
from iocwatch.models import watchlist_item, scan_history, security_alert  # noqa: F401


def init_db() -> None:
    """
    Create all tables (development only).
    In production, replace this with Alembic migrations.
    """
    Base.metadata.create_all(bind=engine)
