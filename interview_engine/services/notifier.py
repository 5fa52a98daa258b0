import logging
from abc import ABC, abstractmethod
from datetime import datetime

import requests

from interview_engine.core.config import settings

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Best-effort delivery. Implementations return False instead of raising."""

    @abstractmethod
    def notify(self, event: str, recipient: str, payload: dict) -> bool:
        ...


class WebhookNotifier(Notifier):
    def __init__(self, url: str, timeout: float = 2.0):
        self.url = url
        self.timeout = timeout

    def notify(self, event, recipient, payload):
        body = {
            "event": event,
            "recipient": recipient,
            "payload": payload,
            "sent_at": datetime.utcnow().isoformat(),
        }
        try:
            response = requests.post(self.url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Notification %s to %s failed: %s", event, recipient, e)
            return False
        return True


class LogNotifier(Notifier):
    def notify(self, event, recipient, payload):
        logger.info("[NOTIFY STUB] event=%s to=%s payload=%s", event, recipient, payload)
        return True


def build_notifier() -> Notifier:
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFY_WEBHOOK_URL, timeout=settings.NOTIFY_TIMEOUT_SEC)
    return LogNotifier()
