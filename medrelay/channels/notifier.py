"""Outbound delivery interface and the console implementation used offline."""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from medrelay.config import settings
from medrelay.schemas.event_schema import DeliveryResult

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Sends text to a channel recipient."""

    @abstractmethod
    async def send(self, recipient_id: str, text: str) -> DeliveryResult:
        """Deliver one message. Implementations report failure instead of raising."""


class ConsoleNotifier(Notifier):
    """Prints outbound messages; used by the console demo."""

    def __init__(self, labels: Optional[dict[str, str]] = None) -> None:
        self.labels = labels or {}

    async def send(self, recipient_id: str, text: str) -> DeliveryResult:
        label = self.labels.get(recipient_id, recipient_id)
        print(f"\n  -> [{label}]")
        for line in text.splitlines():
            print(f"     {line}")
        return DeliveryResult(recipient_id=recipient_id, delivered=True, message_id=uuid.uuid4().hex)


async def deliver(
    notifier: Notifier, recipient_id: str, text: str, timeout_sec: Optional[float] = None,
) -> DeliveryResult:
    """Fire-and-forget send bounded by the notifier timeout. Never raises."""
    timeout_sec = timeout_sec or settings.notifier.timeout_sec
    try:
        result = await asyncio.wait_for(notifier.send(recipient_id, text), timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.warning("Delivery to %s timed out after %.1fs", recipient_id, timeout_sec)
        return DeliveryResult(recipient_id=recipient_id, delivered=False, error="timeout")
    except Exception as e:
        logger.exception("Delivery to %s failed", recipient_id)
        return DeliveryResult(recipient_id=recipient_id, delivered=False, error=str(e))
    if not result.delivered:
        logger.warning("Delivery to %s failed: %s", recipient_id, result.error)
    return result
