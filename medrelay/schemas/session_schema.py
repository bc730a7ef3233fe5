"""Per-sender conversational state."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from medrelay.schemas.catalog_schema import Doctor, Product


class ConversationState(str, Enum):
    """All states a customer session can be in."""
    NEW = "NEW"
    REGISTERING = "REGISTERING"
    LOGGING_IN = "LOGGING_IN"
    LOGGED_IN = "LOGGED_IN"
    SUPPORT_CHAT = "SUPPORT_CHAT"


@dataclass
class RegistrationDraft:
    """Registration details held until the emailed code is confirmed."""
    name: str
    email: str
    password: str


@dataclass
class SessionData:
    """
    Typed scratch data for one session.

    Every handler reads and writes these fields instead of an untyped map.
    Cleared in full on logout.
    """
    search_results: list[Product] = field(default_factory=list)
    doctor_results: list[Doctor] = field(default_factory=list)
    user_id: Optional[str] = None
    auth_token: Optional[str] = None
    pending_attachment_ref: Optional[str] = None
    registration_draft: Optional[RegistrationDraft] = None
    otp_pending: bool = False
    assigned_agent_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def clear(self) -> None:
        """Reset every field to its default."""
        self.__init__()  # type: ignore[misc]

    def clear_registration(self) -> None:
        self.registration_draft = None
        self.otp_pending = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """Conversation record keyed by sender id."""
    sender_id: str
    state: ConversationState = ConversationState.NEW
    data: SessionData = field(default_factory=SessionData)
    last_activity: datetime = field(default_factory=_utcnow)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_logged_in(self) -> bool:
        return self.state == ConversationState.LOGGED_IN
