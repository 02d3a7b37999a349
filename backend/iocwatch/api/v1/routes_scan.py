# backend/iocwatch/api/v1/routes_scan.py

from fastapi import APIRouter, HTTPException, status

from iocwatch.core.errors import ScanFailure
from iocwatch.schemas.scan import IndicatorScanRequest, ScanResult, SweepReport
from iocwatch.services.reputation.reputation_adapter import scan_indicator
from iocwatch.services.scanning import scan_orchestrator as orchestrator_module

router = APIRouter(
    prefix="/scan",
    tags=["scan"],
)


@router.post("/run", response_model=SweepReport, summary="Run one watchlist sweep now")
async def run_scan() -> SweepReport:
    """
    Manual trigger for the same sweep the scheduler runs.
    Blocks until every due item has been handled.
    """
    return await orchestrator_module.scan_orchestrator.run_sweep()


@router.post(
    "/indicator",
    response_model=ScanResult,
    summary="Ad-hoc reputation lookup (not persisted)",
)
async def scan_single_indicator(payload: IndicatorScanRequest) -> ScanResult:
    try:
        return await scan_indicator(payload.indicator_type, payload.indicator_value.strip())
    except ScanFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
