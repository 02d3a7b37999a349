# backend/iocwatch/schemas/watchlist.py
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IndicatorType(str, Enum):
    IP = "ip"
    DOMAIN = "domain"
    HASH = "hash"
    URL = "url"


class WatchlistItemCreate(BaseModel):
    """What the UI posts when a user adds an IOC to the watchlist."""
    indicator_type: IndicatorType
    indicator_value: str = Field(..., min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    scan_frequency_hours: int = Field(24, gt=0)
    alert_on_change: bool = True
    organization_id: Optional[str] = None

    @field_validator("indicator_value")
    @classmethod
    def _strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("indicator_value must not be blank")
        return v


class WatchlistItemActiveUpdate(BaseModel):
    is_active: bool


class WatchlistItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: Optional[str] = None
    indicator_type: IndicatorType
    indicator_value: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    last_scan_at: Optional[datetime] = None
    last_risk_score: Optional[int] = None
    previous_risk_score: Optional[int] = None
    is_malicious: bool = False
    was_malicious: bool = False
    scan_frequency_hours: int = 24
    is_active: bool = True
    alert_on_change: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, v: Any) -> Any:
        return v or []


class ScanHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ioc_id: str
    scanned_at: datetime
    risk_score: Optional[int] = None
    is_malicious: Optional[bool] = None
    scan_result: Optional[dict[str, Any]] = None
    reputation_change: Optional[int] = None
    alert_generated: bool = False
