"""Shared types for capability handlers."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from medrelay.conversation.state_machine import SessionStateMachine
from medrelay.errors import AuthRequired
from medrelay.schemas.intent_schema import IntentResult
from medrelay.schemas.session_schema import Session

if TYPE_CHECKING:
    from medrelay.support.relay import SupportRelay


@dataclass
class HandlerContext:
    """
    Everything a handler may read or mutate for one turn.

    Handlers own session mutation; the dispatcher saves the session after
    the handler returns.
    """
    session: Session
    relay: "SupportRelay"
    machine: SessionStateMachine
    parameters: dict[str, str] = field(default_factory=dict)
    result: Optional[IntentResult] = None

    @property
    def sender_id(self) -> str:
        return self.session.sender_id

    def param(self, name: str) -> str:
        return (self.parameters.get(name) or "").strip()

    def require_user(self) -> str:
        """The logged-in user's id. Raises AuthRequired when the session has none."""
        user_id = self.session.data.user_id
        if not user_id:
            raise AuthRequired("This capability needs a logged-in account")
        return user_id


# A handler returns the reply text, or None when it already notified the customer.
Handler = Callable[[HandlerContext], Awaitable[Optional[str]]]


def parse_index(raw: str, size: int) -> Optional[int]:
    """Convert a 1-based list position into an index, or None when out of range."""
    try:
        index = int(raw) - 1
    except (TypeError, ValueError):
        return None
    return index if 0 <= index < size else None
