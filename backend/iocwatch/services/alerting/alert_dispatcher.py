# backend/iocwatch/services/alerting/alert_dispatcher.py
import logging

from iocwatch.schemas.alert import AlertOut
from iocwatch.services.alerting.slack_alert_service import send_slack_alert
from iocwatch.services.alerting.webhook_alert_service import send_generic_webhook_alert

logger = logging.getLogger(__name__)


def dispatch_alert_notifications(alert: AlertOut) -> None:
    """
    Fan a freshly stored alert out to chat / webhook channels.
    The alert row is already durable; failures here are only logged.
    """
    logger.info(
        "Dispatching notifications for alert %s (priority=%s)",
        alert.id,
        alert.priority.value,
    )

    # Fan-out to individual channels; failures shouldn't break the sweep.
    try:
        send_slack_alert(alert)
    except Exception:
        logger.exception("Slack alert failed.")

    try:
        send_generic_webhook_alert(alert)
    except Exception:
        logger.exception("Generic webhook alert failed.")
