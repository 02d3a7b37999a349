# backend/iocwatch/services/alerting/webhook_alert_service.py
import logging

import requests
from fastapi.encoders import jsonable_encoder

from iocwatch.core.config import settings
from iocwatch.schemas.alert import AlertOut

logger = logging.getLogger(__name__)


def send_generic_webhook_alert(alert: AlertOut) -> None:
    """
    Generic JSON webhook for n8n, email relays, custom dashboards, etc.

    Configure env:
      GENERIC_ALERT_WEBHOOK_URL=https://your-endpoint/ingest
    """
    webhook_url = settings.GENERIC_ALERT_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Generic webhook URL not configured; skipping generic alert.")
        return

    # Make it JSON-safe (datetimes → isoformat, enums → values, etc.)
    json_payload = jsonable_encoder(alert)

    try:
        resp = requests.post(webhook_url, json=json_payload, timeout=5)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.exception("Failed to send generic webhook alert: %s", exc)
