# backend/iocwatch/services/alerting/alert_sink_service.py

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from iocwatch.core.errors import PersistenceError
from iocwatch.db.session import SessionLocal
from iocwatch.models.security_alert import SecurityAlert
from iocwatch.schemas.alert import AlertCreate, AlertOut

logger = logging.getLogger(__name__)


class AlertSinkService:
    """
    Append-only security_alerts table. Downstream notification / UI
    layers tail it; this service never updates a row after insert.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _get_db(self) -> Session:
        return self._session_factory()

    def emit(self, alert: AlertCreate) -> AlertOut:
        db = self._get_db()
        try:
            record = SecurityAlert(
                organization_id=alert.organization_id,
                alert_type=alert.alert_type,
                title=alert.title,
                description=alert.description,
                priority=alert.priority.value,
                source_system=alert.source_system,
                raw_data=alert.raw_data,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return AlertOut.model_validate(record)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to insert alert '{alert.title}': {e}") from e
        finally:
            db.close()

    def list_alerts(
        self, organization_id: Optional[str] = None, limit: int = 50
    ) -> List[AlertOut]:
        """Latest `limit` alerts, optionally for one tenant."""
        db = self._get_db()
        try:
            q = db.query(SecurityAlert)
            if organization_id:
                q = q.filter(SecurityAlert.organization_id == organization_id)
            q = q.order_by(SecurityAlert.created_at.desc()).limit(limit)
            return [AlertOut.model_validate(r) for r in q]
        finally:
            db.close()


alert_sink_service = AlertSinkService()
