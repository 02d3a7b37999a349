# backend/iocwatch/models/security_alert.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from iocwatch.core.clock import utcnow
from iocwatch.db.base_class import Base, JSONType


class SecurityAlert(Base):
    __tablename__ = "security_alerts"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, nullable=False, index=True)

    alert_type = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    priority = Column(String, nullable=False, index=True)   # low | medium | high
    source_system = Column(String, nullable=True)
    raw_data = Column(JSONType)

    is_acknowledged = Column(Boolean, default=False)
    is_resolved = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow, index=True)
