# backend/iocwatch/services/scanning/scan_rules.py
from typing import Optional

from iocwatch.core.config import settings
from iocwatch.schemas.alert import AlertCreate, AlertPriority
from iocwatch.schemas.scan import ScanDelta, ScanResult
from iocwatch.schemas.watchlist import WatchlistItemOut


def compute_delta(
    item: WatchlistItemOut,
    result: ScanResult,
    threshold: Optional[int] = None,
) -> ScanDelta:
    """Compare a fresh scan with the item's current state."""
    if threshold is None:
        threshold = settings.SIGNIFICANT_CHANGE_THRESHOLD

    previous = item.last_risk_score if item.last_risk_score is not None else 0
    change = result.risk_score - previous

    return ScanDelta(
        reputation_change=change,
        status_changed=bool(item.is_malicious) != result.is_malicious,
        significant_change=abs(change) >= threshold,
    )


def should_alert(item: WatchlistItemOut, delta: ScanDelta) -> bool:
    return item.alert_on_change and (delta.status_changed or delta.significant_change)


def alert_priority(result: ScanResult, delta: ScanDelta) -> AlertPriority:
    if result.is_malicious:
        return AlertPriority.HIGH
    if delta.significant_change:
        return AlertPriority.MEDIUM
    return AlertPriority.LOW


def _status_label(is_malicious: bool) -> str:
    return "Malicious" if is_malicious else "Clean"


def build_alert(
    item: WatchlistItemOut, result: ScanResult, delta: ScanDelta
) -> AlertCreate:
    """Caller guarantees item.organization_id is set."""
    change = delta.reputation_change
    if delta.status_changed:
        title = (
            f"IOC Status Changed: {item.indicator_value} is now "
            f"{_status_label(result.is_malicious).upper()}"
        )
    else:
        title = (
            f"IOC Reputation Change: {item.indicator_value} "
            f"({'+' if change > 0 else ''}{change}%)"
        )

    previous = item.last_risk_score if item.last_risk_score is not None else "N/A"
    description = (
        f"Automated IOC scan detected changes for {item.indicator_type.value}: "
        f"{item.indicator_value}. Previous score: {previous}, "
        f"New score: {result.risk_score}. "
        f"Status: {_status_label(bool(item.is_malicious))} -> "
        f"{_status_label(result.is_malicious)}"
    )

    return AlertCreate(
        organization_id=item.organization_id,
        title=title,
        description=description,
        priority=alert_priority(result, delta),
        raw_data={
            "ioc_id": item.id,
            "indicator_type": item.indicator_type.value,
            "indicator_value": item.indicator_value,
            "previous_score": item.last_risk_score,
            "new_score": result.risk_score,
            "reputation_change": change,
            "was_malicious": bool(item.is_malicious),
            "is_malicious": result.is_malicious,
            "source": result.source,
        },
    )
