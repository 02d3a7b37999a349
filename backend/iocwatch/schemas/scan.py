# backend/iocwatch/schemas/scan.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from iocwatch.schemas.watchlist import IndicatorType


class ScanResult(BaseModel):
    """
    Normalized output of one reputation lookup.
    Not persisted as-is; the orchestrator copies it into scan history.
    """
    risk_score: int = Field(..., ge=0, le=100)
    is_malicious: bool
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    source: str  # "abuseipdb" | "virustotal"


class ScanDelta(BaseModel):
    reputation_change: int
    status_changed: bool
    significant_change: bool


class IndicatorScanRequest(BaseModel):
    indicator_type: IndicatorType
    indicator_value: str = Field(..., min_length=1)


class SweepItemDetail(BaseModel):
    ioc_id: str
    indicator: str
    type: str
    risk_score: Optional[int] = None
    is_malicious: Optional[bool] = None
    reputation_change: Optional[int] = None
    alert_generated: bool = False
    error: Optional[str] = None


class SweepReport(BaseModel):
    scanned: int = 0
    alerts_generated: int = 0
    errors: int = 0
    details: List[SweepItemDetail] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
