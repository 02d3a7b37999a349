# backend/tests/conftest.py
import os
import tempfile
from datetime import datetime

import pytest

# Settings are read at import time, so the test DB and keys go in first.
_tmpdir = tempfile.mkdtemp(prefix="iocwatch-tests-")
os.environ["DATABASE_URL_OVERRIDE"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["VIRUSTOTAL_API_KEY"] = "test-vt-key"
os.environ["ABUSEIPDB_API_KEY"] = "test-abuse-key"
os.environ["SLACK_ALERT_WEBHOOK_URL"] = ""
os.environ["GENERIC_ALERT_WEBHOOK_URL"] = ""

from iocwatch.core.errors import ScanFailure, TransientNetworkError  # noqa: E402
from iocwatch.db.base_class import Base  # noqa: E402
from iocwatch.db.init_db import init_db  # noqa: E402
from iocwatch.db.session import SessionLocal, engine  # noqa: E402
from iocwatch.models.watchlist_item import WatchlistItem  # noqa: E402
from iocwatch.schemas.scan import ScanResult  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    """Fresh tables for every test."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_item():
    """Insert a watchlist row directly, bypassing the API defaults."""

    def _make(**overrides) -> str:
        fields = {
            "indicator_type": "ip",
            "indicator_value": "198.51.100.7",
            "organization_id": "org-1",
            "last_scan_at": None,
            "last_risk_score": None,
            "previous_risk_score": None,
            "is_malicious": False,
            "was_malicious": False,
            "scan_frequency_hours": 24,
            "is_active": True,
            "alert_on_change": True,
            "tags": [],
            "created_at": datetime(2024, 1, 1),
        }
        fields.update(overrides)
        db = SessionLocal()
        try:
            record = WatchlistItem(**fields)
            db.add(record)
            db.commit()
            return record.id
        finally:
            db.close()

    return _make


class FakeScanner:
    """
    Stand-in for reputation_adapter.scan_indicator.
    `outcomes` maps indicator value -> ScanResult or exception instance.
    """

    def __init__(self, outcomes: dict):
        self.outcomes = outcomes
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, indicator_type: str, indicator_value: str) -> ScanResult:
        self.calls.append((indicator_type, indicator_value))
        outcome = self.outcomes[indicator_value]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_scanner_cls():
    return FakeScanner


@pytest.fixture
def scan_failure():
    def _failure(indicator_type: str, value: str) -> ScanFailure:
        return ScanFailure(
            indicator_type, value, TransientNetworkError("virustotal", "API error: 503")
        )

    return _failure
