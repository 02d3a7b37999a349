# backend/iocwatch/models/scan_history.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from iocwatch.core.clock import utcnow
from iocwatch.db.base_class import Base, JSONType


class ScanHistory(Base):
    """Append-only; one row per successful scan of a watchlist item."""

    __tablename__ = "ioc_scan_history"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    ioc_id = Column(
        String,
        ForeignKey("ioc_watchlist.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scanned_at = Column(DateTime, default=utcnow, index=True)

    risk_score = Column(Integer, nullable=True)
    is_malicious = Column(Boolean, nullable=True)
    scan_result = Column(JSONType)          # raw reputation payload
    reputation_change = Column(Integer, nullable=True)
    alert_generated = Column(Boolean, default=False)
