# backend/iocwatch/api/v1/routes_alerts.py

from typing import List, Optional

from fastapi import APIRouter, Query

from iocwatch.schemas.alert import AlertOut
from iocwatch.services.alerting.alert_sink_service import alert_sink_service

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=List[AlertOut], summary="Latest security alerts")
def list_alerts(
    organization_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
) -> List[AlertOut]:
    return alert_sink_service.list_alerts(organization_id=organization_id, limit=limit)
