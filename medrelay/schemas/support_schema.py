"""Support roster and chat transcript models."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel


class SupportRole(str, Enum):
    GENERAL = "general"
    ORDERS = "orders"
    MEDICAL = "medical"
    TECHNICAL = "technical"


class SupportAgent(BaseModel):
    """A support team member reachable on the channel."""
    id: str
    name: str
    phone_number: str
    role: SupportRole = SupportRole.GENERAL
    active: bool = True


@dataclass(frozen=True)
class ChatMessage:
    """
    One relayed message between a customer and an agent.

    Immutable; marking as read produces a new record.
    """
    customer_id: str
    agent_id: str
    text: str
    from_customer: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False

    def mark_read(self) -> "ChatMessage":
        return replace(self, read=True)


@dataclass
class RelayResult:
    """Outcome of a relay operation that reports rather than raises."""
    success: bool
    message: str
    customer_id: str = ""
    agent_id: str = ""
