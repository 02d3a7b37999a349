# backend/iocwatch/schemas/alert.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertCreate(BaseModel):
    organization_id: str
    alert_type: str = "ioc_reputation_change"
    title: str
    description: Optional[str] = None
    priority: AlertPriority
    source_system: str = "scheduled-ioc-scan"
    raw_data: Dict[str, Any] = Field(default_factory=dict)


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    alert_type: str
    title: str
    description: Optional[str] = None
    priority: AlertPriority
    source_system: Optional[str] = None
    raw_data: Optional[Dict[str, Any]] = None
    is_acknowledged: bool = False
    is_resolved: bool = False
    created_at: Optional[datetime] = None
