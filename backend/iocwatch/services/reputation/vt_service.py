# backend/iocwatch/services/reputation/vt_service.py
import base64
import math
from typing import Any, Optional

import httpx

from iocwatch.core.config import settings
from iocwatch.core.errors import ConfigurationError, ReputationSourceError
from iocwatch.schemas.scan import ScanResult
from iocwatch.schemas.watchlist import IndicatorType
from iocwatch.services.reputation.http_client import get_json


SOURCE = "virustotal"


def vt_url_id(url: str) -> str:
    """VT v3 identifies URLs by unpadded url-safe base64 of the URL itself."""
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


def vt_endpoint(indicator_type: IndicatorType, value: str) -> str:
    base = settings.VIRUSTOTAL_BASE_URL.rstrip("/")
    if indicator_type == IndicatorType.IP:
        return f"{base}/ip_addresses/{value}"
    if indicator_type == IndicatorType.DOMAIN:
        # VT expects bare domain (no protocol)
        return f"{base}/domains/{value.strip().lower()}"
    if indicator_type == IndicatorType.HASH:
        return f"{base}/files/{value.strip().lower()}"
    return f"{base}/urls/{vt_url_id(value)}"


def normalize_vt_stats(stats: Optional[dict[str, Any]]) -> tuple[int, bool]:
    """
    last_analysis_stats -> (risk_score, is_malicious).

    risk = share of engines saying malicious or suspicious, 0-100,
    rounded half-up. Malicious if any engine says malicious or more
    than two say suspicious.
    """
    stats = stats or {}
    malicious = int(stats.get("malicious") or 0)
    suspicious = int(stats.get("suspicious") or 0)
    total = sum(int(v or 0) for v in stats.values() if isinstance(v, (int, float)))

    risk_score = 0
    if total > 0:
        risk_score = int(math.floor(100 * (malicious + suspicious) / total + 0.5))

    return risk_score, malicious > 0 or suspicious > 2


async def scan_with_virustotal(
    indicator_type: IndicatorType,
    value: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ScanResult:
    """
    Look up any indicator type using the VT v3 API and normalize the
    engine verdict counts into a ScanResult.
    """
    api_key = settings.VIRUSTOTAL_API_KEY
    if not api_key:
        raise ConfigurationError(SOURCE, "VirusTotal API key not configured")

    headers = {
        "x-apikey": api_key,
        "Accept": "application/json",
    }
    data = await get_json(
        SOURCE,
        vt_endpoint(indicator_type, value),
        headers=headers,
        client=client,
    )

    try:
        attr = (data.get("data") or {}).get("attributes") or {}
        risk_score, is_malicious = normalize_vt_stats(attr.get("last_analysis_stats"))
    except (TypeError, ValueError, AttributeError) as e:
        raise ReputationSourceError(SOURCE, "unexpected response shape") from e

    return ScanResult(
        risk_score=risk_score,
        is_malicious=is_malicious,
        raw_payload=data,
        source=SOURCE,
    )
