# backend/iocwatch/services/scanning/scan_orchestrator.py

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from iocwatch.core.clock import utcnow
from iocwatch.core.config import settings
from iocwatch.core.errors import PersistenceError, ScanFailure
from iocwatch.schemas.alert import AlertOut
from iocwatch.schemas.scan import ScanResult, SweepItemDetail, SweepReport
from iocwatch.schemas.watchlist import WatchlistItemOut
from iocwatch.services.alerting.alert_dispatcher import dispatch_alert_notifications
from iocwatch.services.alerting.alert_sink_service import (
    AlertSinkService,
    alert_sink_service,
)
from iocwatch.services.reputation.reputation_adapter import scan_indicator
from iocwatch.services.scanning.scan_rules import build_alert, compute_delta, should_alert
from iocwatch.services.watchlist.watchlist_store_service import (
    WatchlistStoreService,
    watchlist_store_service,
)

logger = logging.getLogger(__name__)

Scanner = Callable[[str, str], Awaitable[ScanResult]]


class ScanOrchestrator:
    """
    One sweep over the due part of the IOC watchlist:

      1. Select due items (coarse DB filter + per-item frequency check)
      2. Scan each item through the reputation adapter
      3. Compute the reputation delta
      4. Emit an alert if the change is worth one (own write, at-least-once)
      5. Persist history + item update in one transaction
      6. Pace outbound calls
      7. Return the SweepReport

    Items are handled strictly one after another. A failing item is
    counted and skipped; it stays due for the next sweep.
    """

    def __init__(
        self,
        store: WatchlistStoreService = watchlist_store_service,
        alert_sink: AlertSinkService = alert_sink_service,
        scanner: Scanner = scan_indicator,
        notifier: Callable[[AlertOut], None] = dispatch_alert_notifications,
        pacing_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._alert_sink = alert_sink
        self._scanner = scanner
        self._notifier = notifier
        self._pacing_seconds = (
            settings.SCAN_PACING_SECONDS if pacing_seconds is None else pacing_seconds
        )
        self._sleep = sleep

    @staticmethod
    def coarse_window() -> timedelta:
        return timedelta(hours=max(1, settings.SCAN_COARSE_WINDOW_HOURS))

    @staticmethod
    def is_due(item: WatchlistItemOut, now: datetime) -> bool:
        if not item.is_active:
            return False
        if item.last_scan_at is None:
            return True
        frequency = item.scan_frequency_hours or settings.DEFAULT_SCAN_FREQUENCY_HOURS
        return now - item.last_scan_at >= timedelta(hours=frequency)

    async def run_sweep(self, now: Optional[datetime] = None) -> SweepReport:
        now = now or utcnow()
        report = SweepReport(started_at=now)

        logger.info("Starting scheduled IOC scan...")
        candidates = self._store.list_due_items(now, self.coarse_window())
        logger.info("Found %d IOCs past the coarse scan window", len(candidates))

        attempted = False
        for item in candidates:
            if not self.is_due(item, now):
                continue

            # Rate limiting - wait between outbound scans
            if attempted:
                await self._sleep(self._pacing_seconds)
            attempted = True

            try:
                await self._process_item(item, now, report)
            except Exception as e:
                # One bad item never aborts the sweep
                logger.exception("Unexpected error scanning %s", item.indicator_value)
                self._record_error(report, item, f"{type(e).__name__}: {e}")

        report.finished_at = utcnow()
        logger.info(
            "Scan complete: %d scanned, %d alerts, %d errors",
            report.scanned,
            report.alerts_generated,
            report.errors,
        )
        return report

    async def _process_item(
        self, item: WatchlistItemOut, now: datetime, report: SweepReport
    ) -> None:
        indicator_type = item.indicator_type.value
        logger.info("Scanning %s: %s", indicator_type, item.indicator_value)

        try:
            result = await self._scanner(indicator_type, item.indicator_value)
        except ScanFailure as e:
            logger.warning("Error scanning %s: %s", item.indicator_value, e)
            self._record_error(report, item, str(e))
            return

        delta = compute_delta(item, result)
        alert_wanted = should_alert(item, delta)
        alert_emitted = False

        try:
            # Alert goes out before the item write-back: if the write-back
            # fails the item stays due and a duplicate alert is acceptable.
            if alert_wanted and item.organization_id:
                alert = self._alert_sink.emit(build_alert(item, result, delta))
                alert_emitted = True
                report.alerts_generated += 1
                self._notifier(alert)

            self._store.record_scan(
                item.id,
                scanned_at=now,
                result=result,
                reputation_change=delta.reputation_change,
                alert_generated=alert_wanted,
            )
        except PersistenceError as e:
            logger.exception("Persistence failed for %s", item.indicator_value)
            self._record_error(report, item, str(e), alert_generated=alert_emitted)
            return

        report.scanned += 1
        report.details.append(
            SweepItemDetail(
                ioc_id=item.id,
                indicator=item.indicator_value,
                type=indicator_type,
                risk_score=result.risk_score,
                is_malicious=result.is_malicious,
                reputation_change=delta.reputation_change,
                alert_generated=alert_emitted,
            )
        )

    @staticmethod
    def _record_error(
        report: SweepReport,
        item: WatchlistItemOut,
        message: str,
        alert_generated: bool = False,
    ) -> None:
        report.errors += 1
        report.details.append(
            SweepItemDetail(
                ioc_id=item.id,
                indicator=item.indicator_value,
                type=item.indicator_type.value,
                alert_generated=alert_generated,
                error=message,
            )
        )


scan_orchestrator = ScanOrchestrator()
