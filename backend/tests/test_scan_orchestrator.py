# backend/tests/test_scan_orchestrator.py
import asyncio
from datetime import datetime, timedelta

import httpx

from iocwatch.core.errors import PersistenceError
from iocwatch.schemas.scan import ScanResult
from iocwatch.services.alerting.alert_sink_service import AlertSinkService
from iocwatch.services.reputation.reputation_adapter import scan_indicator
from iocwatch.services.scanning.scan_orchestrator import ScanOrchestrator
from iocwatch.services.watchlist.watchlist_store_service import WatchlistStoreService

NOW = datetime(2024, 6, 1, 12, 0, 0)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class BrokenStore(WatchlistStoreService):
    def record_scan(self, *args, **kwargs):
        raise PersistenceError("disk full")


def make_orchestrator(scanner, store=None, notified=None, sleep=None):
    store = store or WatchlistStoreService()
    notified = notified if notified is not None else []
    return ScanOrchestrator(
        store=store,
        alert_sink=AlertSinkService(),
        scanner=scanner,
        notifier=notified.append,
        pacing_seconds=1.0,
        sleep=sleep or RecordingSleep(),
    )


def sweep(orchestrator, now=NOW):
    return asyncio.run(orchestrator.run_sweep(now=now))


def vt(score, malicious=False):
    return ScanResult(risk_score=score, is_malicious=malicious, source="virustotal")


def test_end_to_end_ip_turns_malicious(make_item, fake_scanner_cls):
    item_id = make_item(
        indicator_type="ip",
        indicator_value="203.0.113.5",
        last_risk_score=20,
        is_malicious=False,
        scan_frequency_hours=24,
        last_scan_at=NOW - timedelta(hours=30),
        alert_on_change=True,
    )
    scanner = fake_scanner_cls(
        {"203.0.113.5": ScanResult(risk_score=72, is_malicious=True, source="abuseipdb")}
    )
    notified = []
    report = sweep(make_orchestrator(scanner, notified=notified))

    assert (report.scanned, report.alerts_generated, report.errors) == (1, 1, 0)

    store = WatchlistStoreService()
    history = store.list_history(item_id)
    assert len(history) == 1
    assert history[0].reputation_change == 52
    assert history[0].risk_score == 72
    assert history[0].alert_generated is True

    updated = store.get_item(item_id)
    assert updated.previous_risk_score == 20
    assert updated.last_risk_score == 72
    assert updated.was_malicious is False
    assert updated.is_malicious is True
    assert updated.last_scan_at == NOW

    alerts = AlertSinkService().list_alerts()
    assert len(alerts) == 1
    assert alerts[0].priority.value == "high"
    assert "203.0.113.5" in alerts[0].title
    assert "203.0.113.5" in alerts[0].description
    assert [a.id for a in notified] == [alerts[0].id]


def test_failed_scan_leaves_item_untouched_and_sweep_continues(
    make_item, fake_scanner_cls, scan_failure
):
    bad_id = make_item(indicator_value="192.0.2.1", last_risk_score=10,
                       created_at=datetime(2024, 1, 1))
    good_id = make_item(indicator_value="192.0.2.2", created_at=datetime(2024, 1, 2))
    scanner = fake_scanner_cls({
        "192.0.2.1": scan_failure("ip", "192.0.2.1"),
        "192.0.2.2": vt(5),
    })
    report = sweep(make_orchestrator(scanner))

    assert report.errors == 1
    assert report.scanned == 1
    assert [c[1] for c in scanner.calls] == ["192.0.2.1", "192.0.2.2"]
    assert "503" in report.details[0].error

    store = WatchlistStoreService()
    assert store.list_history(bad_id) == []
    bad = store.get_item(bad_id)
    assert bad.last_scan_at is None
    assert bad.last_risk_score == 10
    assert len(store.list_history(good_id)) == 1


def test_item_inside_its_frequency_window_is_not_scanned(make_item, fake_scanner_cls):
    item_id = make_item(
        indicator_value="192.0.2.9",
        last_scan_at=NOW - timedelta(hours=5),
        last_risk_score=30,
        scan_frequency_hours=24,
    )
    scanner = fake_scanner_cls({"192.0.2.9": vt(99, True)})
    report = sweep(make_orchestrator(scanner))

    assert scanner.calls == []
    assert report.scanned == 0 and report.details == []
    assert WatchlistStoreService().get_item(item_id).last_risk_score == 30


def test_second_sweep_right_after_success_makes_no_calls(make_item, fake_scanner_cls):
    make_item(indicator_value="192.0.2.10")
    scanner = fake_scanner_cls({"192.0.2.10": vt(15)})
    orchestrator = make_orchestrator(scanner)

    sweep(orchestrator, now=NOW)
    sweep(orchestrator, now=NOW + timedelta(minutes=5))
    sweep(orchestrator, now=NOW + timedelta(hours=3))

    assert len(scanner.calls) == 1


def test_history_grows_by_one_per_scan_in_time_order(make_item, fake_scanner_cls):
    item_id = make_item(indicator_value="192.0.2.11", scan_frequency_hours=24)
    scanner = fake_scanner_cls({"192.0.2.11": vt(10)})
    orchestrator = make_orchestrator(scanner)

    times = [NOW + timedelta(hours=25 * i) for i in range(3)]
    for t in times:
        sweep(orchestrator, now=t)

    history = WatchlistStoreService().list_history(item_id)
    assert len(history) == 3
    scanned = sorted(h.scanned_at for h in history)
    assert scanned == times
    assert all(a < b for a, b in zip(scanned, scanned[1:]))


def test_small_change_without_status_flip_raises_no_alert(make_item, fake_scanner_cls):
    make_item(indicator_value="192.0.2.12", last_risk_score=40, alert_on_change=True)
    scanner = fake_scanner_cls({"192.0.2.12": vt(49)})
    report = sweep(make_orchestrator(scanner))

    assert report.scanned == 1
    assert report.alerts_generated == 0
    assert AlertSinkService().list_alerts() == []


def test_alert_on_change_disabled_never_alerts(make_item, fake_scanner_cls):
    make_item(indicator_value="192.0.2.13", last_risk_score=0, alert_on_change=False)
    scanner = fake_scanner_cls({"192.0.2.13": vt(100, True)})
    report = sweep(make_orchestrator(scanner))

    assert report.alerts_generated == 0
    assert AlertSinkService().list_alerts() == []


def test_status_flip_generates_exactly_one_high_alert(make_item, fake_scanner_cls):
    make_item(indicator_type="domain", indicator_value="bad.example",
              last_risk_score=40, is_malicious=False)
    scanner = fake_scanner_cls({"bad.example": vt(42, True)})
    report = sweep(make_orchestrator(scanner))

    alerts = AlertSinkService().list_alerts()
    assert report.alerts_generated == 1
    assert len(alerts) == 1
    assert alerts[0].priority.value == "high"
    assert alerts[0].raw_data["indicator_type"] == "domain"


def test_no_alert_row_without_organization(make_item, fake_scanner_cls):
    item_id = make_item(indicator_value="192.0.2.14", organization_id=None, last_risk_score=0)
    scanner = fake_scanner_cls({"192.0.2.14": vt(80, True)})
    report = sweep(make_orchestrator(scanner))

    assert report.errors == 0
    assert report.alerts_generated == 0
    assert AlertSinkService().list_alerts() == []
    assert WatchlistStoreService().get_item(item_id).last_risk_score == 80


def test_inactive_items_are_ignored(make_item, fake_scanner_cls):
    make_item(indicator_value="192.0.2.15", is_active=False)
    scanner = fake_scanner_cls({"192.0.2.15": vt(50)})
    report = sweep(make_orchestrator(scanner))

    assert scanner.calls == []
    assert report.scanned == 0


def test_pacing_between_scans_only(make_item, fake_scanner_cls, scan_failure):
    for i, value in enumerate(["192.0.2.20", "192.0.2.21", "192.0.2.22"]):
        make_item(indicator_value=value, created_at=datetime(2024, 1, 1 + i))
    scanner = fake_scanner_cls({
        "192.0.2.20": vt(1),
        "192.0.2.21": scan_failure("ip", "192.0.2.21"),
        "192.0.2.22": vt(2),
    })
    sleep = RecordingSleep()
    sweep(make_orchestrator(scanner, sleep=sleep))

    assert sleep.delays == [1.0, 1.0]


def test_persistence_failure_is_counted_and_alert_still_emitted(make_item, fake_scanner_cls):
    item_id = make_item(indicator_value="192.0.2.30", last_risk_score=0)
    scanner = fake_scanner_cls({"192.0.2.30": vt(90, True)})
    report = sweep(make_orchestrator(scanner, store=BrokenStore()))

    assert report.errors == 1
    assert report.scanned == 0
    assert report.alerts_generated == 1
    assert "disk full" in report.details[0].error
    assert len(AlertSinkService().list_alerts()) == 1

    store = WatchlistStoreService()
    assert store.get_item(item_id).last_scan_at is None
    assert store.list_history(item_id) == []


def test_both_real_sources_down_leaves_item_untouched(make_item):
    item_id = make_item(
        indicator_type="ip",
        indicator_value="203.0.113.77",
        last_risk_score=35,
        is_malicious=False,
        last_scan_at=NOW - timedelta(hours=30),
    )
    hosts = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(503 if "virustotal" in request.url.host else 502, json={})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            orchestrator = make_orchestrator(
                lambda t, v: scan_indicator(t, v, client=client)
            )
            return await orchestrator.run_sweep(now=NOW)

    report = asyncio.run(run())

    assert report.errors == 1
    assert report.scanned == 0
    assert hosts == ["api.abuseipdb.com", "www.virustotal.com"]
    assert "203.0.113.77" in report.details[0].error

    store = WatchlistStoreService()
    assert store.list_history(item_id) == []
    item = store.get_item(item_id)
    assert item.last_risk_score == 35
    assert item.previous_risk_score is None
    assert item.last_scan_at == NOW - timedelta(hours=30)
    assert AlertSinkService().list_alerts() == []


def test_unreadable_row_is_skipped_and_rest_of_sweep_runs(make_item, fake_scanner_cls):
    make_item(indicator_type="email", indicator_value="someone@example.com",
              created_at=datetime(2024, 1, 1))
    good_id = make_item(indicator_value="192.0.2.40", created_at=datetime(2024, 1, 2))
    scanner = fake_scanner_cls({"192.0.2.40": vt(12)})
    report = sweep(make_orchestrator(scanner))

    assert scanner.calls == [("ip", "192.0.2.40")]
    assert report.scanned == 1
    assert len(WatchlistStoreService().list_history(good_id)) == 1
