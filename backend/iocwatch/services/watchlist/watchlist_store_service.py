# backend/iocwatch/services/watchlist/watchlist_store_service.py

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from iocwatch.core.clock import utcnow
from iocwatch.core.errors import PersistenceError
from iocwatch.db.session import SessionLocal
from iocwatch.models.scan_history import ScanHistory
from iocwatch.models.watchlist_item import WatchlistItem
from iocwatch.schemas.scan import ScanResult
from iocwatch.schemas.watchlist import (
    IndicatorType,
    ScanHistoryOut,
    WatchlistItemCreate,
    WatchlistItemOut,
)

logger = logging.getLogger(__name__)


def normalize_indicator(indicator_type: IndicatorType, value: str) -> str:
    value = value.strip()
    if indicator_type in (IndicatorType.DOMAIN, IndicatorType.HASH):
        return value.lower()
    return value


class WatchlistStoreService:
    """
    DB-backed watchlist store (Postgres via SQLAlchemy).

    The sweep only uses list_due_items() and record_scan(); the rest is
    the CRUD surface the dashboard talks to.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _get_db(self) -> Session:
        return self._session_factory()

    # --------------------------------------------------------
    # Sweep: selection
    # --------------------------------------------------------
    def list_due_items(
        self, now: datetime, coarse_window: timedelta
    ) -> List[WatchlistItemOut]:
        """
        Active items never scanned, or not scanned within `coarse_window`.
        The per-item scan_frequency_hours check is done by the caller.
        """
        cutoff = now - coarse_window
        db = self._get_db()
        try:
            q = (
                db.query(WatchlistItem)
                .filter(WatchlistItem.is_active.is_(True))
                .filter(
                    or_(
                        WatchlistItem.last_scan_at.is_(None),
                        WatchlistItem.last_scan_at <= cutoff,
                    )
                )
                .order_by(WatchlistItem.created_at.asc())
            )
            items: List[WatchlistItemOut] = []
            for r in q:
                try:
                    items.append(WatchlistItemOut.model_validate(r))
                except ValidationError as e:
                    # Row written by another client with values we can't scan
                    logger.warning("Skipping unreadable watchlist row %s: %s", r.id, e)
            return items
        finally:
            db.close()

    # --------------------------------------------------------
    # Sweep: write-back (history + item in one transaction)
    # --------------------------------------------------------
    def record_scan(
        self,
        item_id: str,
        scanned_at: datetime,
        result: ScanResult,
        reputation_change: int,
        alert_generated: bool,
    ) -> None:
        """
        Append the history row and roll the item's one-step history forward.
        Both writes commit together or not at all.
        """
        db = self._get_db()
        try:
            item = (
                db.query(WatchlistItem)
                .filter(WatchlistItem.id == item_id)
                .one_or_none()
            )
            if item is None:
                raise PersistenceError(f"Watchlist item {item_id} disappeared before write-back")

            db.add(
                ScanHistory(
                    ioc_id=item.id,
                    scanned_at=scanned_at,
                    risk_score=result.risk_score,
                    is_malicious=result.is_malicious,
                    scan_result=result.raw_payload,
                    reputation_change=reputation_change,
                    alert_generated=alert_generated,
                )
            )

            item.previous_risk_score = item.last_risk_score
            item.was_malicious = bool(item.is_malicious)
            item.last_risk_score = result.risk_score
            item.is_malicious = result.is_malicious
            item.last_scan_at = scanned_at

            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to persist scan for {item_id}: {e}") from e
        finally:
            db.close()

    # --------------------------------------------------------
    # CRUD
    # --------------------------------------------------------
    def list_items(self, organization_id: Optional[str] = None) -> List[WatchlistItemOut]:
        db = self._get_db()
        try:
            q = db.query(WatchlistItem)
            if organization_id:
                q = q.filter(WatchlistItem.organization_id == organization_id)
            q = q.order_by(WatchlistItem.created_at.desc())
            return [WatchlistItemOut.model_validate(r) for r in q]
        finally:
            db.close()

    def get_item(self, item_id: str) -> WatchlistItemOut:
        """Raises KeyError if not found."""
        db = self._get_db()
        try:
            record = db.get(WatchlistItem, item_id)
            if record is None:
                raise KeyError(item_id)
            return WatchlistItemOut.model_validate(record)
        finally:
            db.close()

    def create_item(self, payload: WatchlistItemCreate) -> WatchlistItemOut:
        db = self._get_db()
        try:
            now = utcnow()
            record = WatchlistItem(
                organization_id=payload.organization_id,
                indicator_type=payload.indicator_type.value,
                indicator_value=normalize_indicator(
                    payload.indicator_type, payload.indicator_value
                ),
                description=payload.description,
                tags=list(payload.tags),
                scan_frequency_hours=payload.scan_frequency_hours,
                alert_on_change=payload.alert_on_change,
                is_active=True,
                is_malicious=False,
                was_malicious=False,
                created_at=now,
                updated_at=now,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            logger.info(
                "Added %s %s to watchlist (id=%s)",
                record.indicator_type,
                record.indicator_value,
                record.id,
            )
            return WatchlistItemOut.model_validate(record)
        finally:
            db.close()

    def set_active(self, item_id: str, is_active: bool) -> WatchlistItemOut:
        """Retire / re-enable an item. Raises KeyError if not found."""
        db = self._get_db()
        try:
            record = db.get(WatchlistItem, item_id)
            if record is None:
                raise KeyError(item_id)
            record.is_active = is_active
            db.commit()
            db.refresh(record)
            return WatchlistItemOut.model_validate(record)
        finally:
            db.close()

    def delete_item(self, item_id: str) -> None:
        """Hard delete, history included. Raises KeyError if not found."""
        db = self._get_db()
        try:
            record = db.get(WatchlistItem, item_id)
            if record is None:
                raise KeyError(item_id)
            db.query(ScanHistory).filter(ScanHistory.ioc_id == item_id).delete(
                synchronize_session=False
            )
            db.delete(record)
            db.commit()
        finally:
            db.close()

    def list_history(self, ioc_id: str, limit: int = 50) -> List[ScanHistoryOut]:
        """Latest `limit` scans of one item, newest first."""
        db = self._get_db()
        try:
            q = (
                db.query(ScanHistory)
                .filter(ScanHistory.ioc_id == ioc_id)
                .order_by(ScanHistory.scanned_at.desc())
                .limit(limit)
            )
            return [ScanHistoryOut.model_validate(r) for r in q]
        finally:
            db.close()


watchlist_store_service = WatchlistStoreService()
