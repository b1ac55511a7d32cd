from __future__ import annotations

import logging

import requests

from news_intel.models.schemas import Alert

logger = logging.getLogger(__name__)


def dispatch_alerts(
    alerts: list[Alert],
    channel: str,
    enabled: bool,
    slack_webhook_url: str,
) -> set[str]:
    """Log alerts and optionally post them to a Slack webhook."""
    if not alerts:
        logger.debug("No alerts generated.")
        return set()

    logger.info("Alerts generated: %d", len(alerts))
    for alert in alerts:
        logger.info(
            "ALERT | %s | priority=%d | %s | %s",
            alert.type,
            alert.priority,
            alert.title,
            alert.message,
        )

    if not enabled:
        logger.debug("Dispatch disabled. Set ALERTS_ENABLED=true to enable.")
        return set()

    if channel != "slack":
        return set()

    if not slack_webhook_url:
        logger.warning("Slack webhook URL not set. Skipping dispatch.")
        return set()

    sent_ids: set[str] = set()
    for alert in alerts:
        payload = {
            "text": (
                f"[{alert.type.upper()} P{alert.priority}] {alert.title} | "
                f"{alert.message}"
            )
        }
        try:
            response = requests.post(
                slack_webhook_url,
                json=payload,
                timeout=5,
            )
        except requests.RequestException as exc:
            logger.warning("Slack send failed: %s", exc)
            continue

        if not 200 <= response.status_code < 300:
            logger.warning("Slack send failed: status %s", response.status_code)
            continue

        sent_ids.add(alert.alert_id)

    return sent_ids
