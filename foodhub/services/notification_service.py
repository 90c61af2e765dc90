# foodhub/services/notification_service.py
from datetime import datetime
from typing import Any, Dict

import requests

from foodhub.celery_worker import celery_app
from foodhub.utils.retry import http_retry
from foodhub.utils.settings import NOTIFICATION_WEBHOOK_URL
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Wysylka zdarzen zmiany statusu.
    Uzywa Celery do asynchronicznego przetwarzania, dostarczenie jest poza rdzeniem.
    """

    @staticmethod
    def order_status_changed(
        order_id: int,
        partner_id: int | None,
        old_status: str,
        new_status: str,
        timestamp: datetime,
    ) -> None:
        event = {
            "order_id": order_id,
            "partner_id": partner_id,
            "old_status": old_status,
            "new_status": new_status,
            "timestamp": timestamp.isoformat(),
        }
        send_status_event_task.delay(event)


@http_retry()
def _post_webhook(url: str, event: Dict[str, Any]) -> None:
    resp = requests.post(url, json=event, timeout=3)
    resp.raise_for_status()


@celery_app.task(name="foodhub.services.notification_service.send_status_event_task")
def send_status_event_task(event: Dict[str, Any]):
    """
    Celery task - loguje zdarzenie i opcjonalnie wysyla je na webhook.
    """
    logger.info(
        f"[NOTIFICATION] Order {event['order_id']} partner={event.get('partner_id')}: "
        f"{event['old_status']} -> {event['new_status']}"
    )

    if NOTIFICATION_WEBHOOK_URL:
        _post_webhook(NOTIFICATION_WEBHOOK_URL, event)
        return {**event, "delivery": "webhook"}

    return {**event, "delivery": "logged"}
