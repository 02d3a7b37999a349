# backend/iocwatch/services/alerting/slack_alert_service.py
import logging

import requests

from iocwatch.core.config import settings
from iocwatch.schemas.alert import AlertOut

logger = logging.getLogger(__name__)

PRIORITY_EMOJI = {
    "high": ":rotating_light:",
    "medium": ":warning:",
    "low": ":information_source:",
}


def build_slack_text(alert: AlertOut) -> str:
    raw = alert.raw_data or {}
    text_lines = [
        f"{PRIORITY_EMOJI.get(alert.priority.value, '')} *{alert.title}*".strip(),
        f"*Priority*: `{alert.priority.value}`",
    ]
    if raw.get("indicator_value"):
        text_lines.append(
            f"*Indicator*: `{raw.get('indicator_value')}` ({raw.get('indicator_type')})"
        )
    if "new_score" in raw:
        prev = raw.get("previous_score")
        text_lines.append(
            f"*Score*: {prev if prev is not None else 'N/A'} → {raw.get('new_score')}"
        )
    if alert.description:
        text_lines.append(f"*Details*: {alert.description}")
    return "\n".join(text_lines)


def send_slack_alert(alert: AlertOut) -> None:
    """
    Simple Slack alert sender using Incoming Webhook URL.

    Configure env:
      SLACK_ALERT_WEBHOOK_URL=https://hooks.slack.com/services/...
    """
    webhook_url = settings.SLACK_ALERT_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Slack webhook URL not configured; skipping Slack alert.")
        return

    payload = {"text": build_slack_text(alert)}

    try:
        resp = requests.post(webhook_url, json=payload, timeout=5)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.exception("Failed to send Slack alert: %s", exc)
