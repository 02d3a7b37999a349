# backend/iocwatch/models/watchlist_item.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from iocwatch.core.clock import utcnow
from iocwatch.db.base_class import Base, JSONType


class WatchlistItem(Base):
    __tablename__ = "ioc_watchlist"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, nullable=True, index=True)

    indicator_type = Column(String, nullable=False, index=True)   # ip | domain | hash | url
    indicator_value = Column(String, nullable=False)
    description = Column(String, nullable=True)
    tags = Column(JSONType, default=list)

    last_scan_at = Column(DateTime, nullable=True, index=True)
    last_risk_score = Column(Integer, nullable=True)
    previous_risk_score = Column(Integer, nullable=True)
    is_malicious = Column(Boolean, nullable=False, default=False)
    was_malicious = Column(Boolean, nullable=False, default=False)

    scan_frequency_hours = Column(Integer, nullable=False, default=24)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    alert_on_change = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
