"""Inbound channel events and outbound delivery results."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from medrelay.errors import ProtocolViolation


class InboundEvent(BaseModel):
    """A text message (or staged attachment) received from the channel."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sender_id: str = Field(alias="senderId", min_length=1)
    text: str = ""
    message_id: str = Field(alias="messageId", min_length=1)
    attachment_ref: Optional[str] = Field(default=None, alias="attachmentRef")

    @field_validator("sender_id")
    @classmethod
    def _strip_sender(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("sender id is blank")
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "InboundEvent":
        """Validate a raw payload, raising ProtocolViolation when malformed."""
        if not isinstance(payload, dict):
            raise ProtocolViolation(f"Expected an object payload, got {type(payload).__name__}")
        try:
            event = cls.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolViolation(f"Malformed inbound event: {exc.error_count()} error(s)") from exc
        if not event.text.strip() and not event.attachment_ref:
            raise ProtocolViolation("Inbound event carries neither text nor attachment")
        return event


class DeliveryResult(BaseModel):
    """Outcome of a single outbound send."""
    recipient_id: str
    delivered: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
