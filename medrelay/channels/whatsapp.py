"""
WhatsApp Cloud API channel.

``WhatsAppNotifier`` posts text messages through the Graph API;
``extract_events`` turns a webhook body into InboundEvents. Media messages
become attachment events carrying the media id, which the dispatcher keeps
until the customer links it to an order.
"""

import logging
from typing import Any, Optional

import httpx

from medrelay.channels.notifier import Notifier
from medrelay.config import NotifierConfig, settings
from medrelay.errors import ProtocolViolation
from medrelay.schemas.event_schema import DeliveryResult, InboundEvent

logger = logging.getLogger(__name__)

# Reduce noise from httpx
logging.getLogger("httpx").setLevel(logging.WARNING)

MEDIA_TYPES = ("image", "document")


class WhatsAppNotifier(Notifier):
    """Sends text messages with the WhatsApp Cloud API."""

    def __init__(
        self,
        config: Optional[NotifierConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or settings.notifier
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout_sec)
        self.enabled = bool(self.config.phone_number_id and self.config.access_token)
        if not self.enabled:
            logger.warning("WhatsApp credentials not configured, outbound messages will be dropped")
        self.url = f"{self.config.api_base}/{self.config.phone_number_id}/messages"

    async def send(self, recipient_id: str, text: str) -> DeliveryResult:
        if not self.enabled:
            return DeliveryResult(recipient_id=recipient_id, delivered=False, error="not configured")

        try:
            response = await self._client.post(
                self.url,
                headers={"Authorization": f"Bearer {self.config.access_token}"},
                json={
                    "messaging_product": "whatsapp",
                    "recipient_type": "individual",
                    "to": recipient_id,
                    "type": "text",
                    "text": {"preview_url": False, "body": text},
                },
            )
        except httpx.TimeoutException:
            logger.warning("WhatsApp send to %s timed out", recipient_id)
            return DeliveryResult(recipient_id=recipient_id, delivered=False, error="timeout")
        except httpx.HTTPError as e:
            logger.error("WhatsApp send to %s failed: %s", recipient_id, e)
            return DeliveryResult(recipient_id=recipient_id, delivered=False, error=str(e))

        if response.status_code != 200:
            logger.error("WhatsApp API returned %d for %s", response.status_code, recipient_id)
            return DeliveryResult(
                recipient_id=recipient_id,
                delivered=False,
                error=f"HTTP {response.status_code}",
            )

        messages = response.json().get("messages") or [{}]
        return DeliveryResult(
            recipient_id=recipient_id,
            delivered=True,
            message_id=messages[0].get("id"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def extract_events(payload: Any) -> list[InboundEvent]:
    """
    Decode a Cloud API webhook body.

    Status callbacks, unsupported message types and malformed messages are
    skipped individually. Raises ProtocolViolation when the body is not a
    WhatsApp webhook at all.
    """
    if not isinstance(payload, dict) or payload.get("object") != "whatsapp_business_account":
        raise ProtocolViolation("Not a WhatsApp Business webhook payload")

    events: list[InboundEvent] = []
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            for message in value.get("messages") or []:
                try:
                    event = _to_event(message)
                except ProtocolViolation as e:
                    logger.warning("Skipping WhatsApp message %s: %s", message.get("id", "?"), e)
                    continue
                if event is not None:
                    events.append(event)
    return events


def _to_event(message: dict) -> Optional[InboundEvent]:
    kind = message.get("type")
    fields = {"senderId": message.get("from", ""), "messageId": message.get("id", "")}
    if kind == "text":
        fields["text"] = (message.get("text") or {}).get("body", "")
    elif kind in MEDIA_TYPES:
        media = message.get(kind) or {}
        fields["attachmentRef"] = media.get("id")
        fields["text"] = media.get("caption", "")
    else:
        logger.debug("Skipping unsupported WhatsApp message type: %s", kind)
        return None
    return InboundEvent.from_payload(fields)
