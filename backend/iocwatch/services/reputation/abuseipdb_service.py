# backend/iocwatch/services/reputation/abuseipdb_service.py
from typing import Optional

import httpx

from iocwatch.core.config import settings
from iocwatch.core.errors import ConfigurationError, ReputationSourceError
from iocwatch.schemas.scan import ScanResult
from iocwatch.services.reputation.http_client import get_json


SOURCE = "abuseipdb"
MAX_AGE_IN_DAYS = 90
MALICIOUS_CONFIDENCE = 50


async def scan_with_abuseipdb(
    ip: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ScanResult:
    """
    Call AbuseIPDB check endpoint.
    abuseConfidenceScore is already 0-100 and is used as the risk score.
    """
    api_key = settings.ABUSEIPDB_API_KEY
    if not api_key:
        raise ConfigurationError(SOURCE, "AbuseIPDB API key not configured")

    headers = {"Key": api_key, "Accept": "application/json"}
    params = {
        "ipAddress": ip,
        "maxAgeInDays": MAX_AGE_IN_DAYS,
    }

    data = await get_json(
        SOURCE,
        f"{settings.ABUSEIPDB_BASE_URL.rstrip('/')}/check",
        headers=headers,
        params=params,
        client=client,
    )

    try:
        score = int((data.get("data") or {}).get("abuseConfidenceScore") or 0)
    except (TypeError, ValueError, AttributeError) as e:
        raise ReputationSourceError(SOURCE, "unexpected response shape") from e
    score = max(0, min(100, score))

    return ScanResult(
        risk_score=score,
        is_malicious=score > MALICIOUS_CONFIDENCE,
        raw_payload=data,
        source=SOURCE,
    )
