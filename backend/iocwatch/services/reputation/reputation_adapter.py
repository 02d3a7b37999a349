# backend/iocwatch/services/reputation/reputation_adapter.py
import logging
from typing import Optional

import httpx

from iocwatch.core.errors import ReputationSourceError, ScanFailure
from iocwatch.schemas.scan import ScanResult
from iocwatch.schemas.watchlist import IndicatorType
from iocwatch.services.reputation.abuseipdb_service import scan_with_abuseipdb
from iocwatch.services.reputation.vt_service import scan_with_virustotal

logger = logging.getLogger(__name__)


async def scan_indicator(
    indicator_type: IndicatorType | str,
    indicator_value: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ScanResult:
    """
    Produce one normalized ScanResult for an indicator.

      - ip: AbuseIPDB first, VirusTotal once if that fails for any reason
      - everything else: VirusTotal only

    No retries here. Raises ScanFailure when nothing usable came back.
    """
    indicator_type = IndicatorType(indicator_type)

    if indicator_type == IndicatorType.IP:
        try:
            return await scan_with_abuseipdb(indicator_value, client=client)
        except ReputationSourceError as e:
            logger.info(
                "AbuseIPDB lookup failed for %s (%s); falling back to VirusTotal",
                indicator_value,
                e,
            )

    try:
        return await scan_with_virustotal(indicator_type, indicator_value, client=client)
    except ReputationSourceError as e:
        raise ScanFailure(indicator_type.value, indicator_value, e) from e
