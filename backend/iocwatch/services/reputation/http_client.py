# backend/iocwatch/services/reputation/http_client.py
from typing import Any, Optional

import httpx

from iocwatch.core.config import settings
from iocwatch.core.errors import (
    ReputationSourceError,
    SourceResponseError,
    TransientNetworkError,
)


async def get_json(
    source: str,
    url: str,
    *,
    headers: dict[str, str],
    params: Optional[dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """
    GET `url` and return the decoded JSON body.

    Every failure is mapped onto the ReputationSourceError family so the
    adapter can decide on fallback without knowing about httpx.
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.REPUTATION_HTTP_TIMEOUT) as c:
                resp = await c.get(url, headers=headers, params=params)
        else:
            resp = await client.get(url, headers=headers, params=params)
    except httpx.TimeoutException as e:
        raise TransientNetworkError(source, f"timeout: {e}") from e
    except httpx.TransportError as e:
        raise TransientNetworkError(source, f"{type(e).__name__}: {e}") from e

    if resp.status_code >= 500:
        raise TransientNetworkError(source, f"API error: {resp.status_code}")
    if not resp.is_success:
        raise SourceResponseError(source, resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise ReputationSourceError(source, "response is not valid JSON") from e

    if not isinstance(data, dict):
        raise ReputationSourceError(source, "unexpected response shape")
    return data
