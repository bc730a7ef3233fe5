"""
Finite state machine for deterministic session flow control.

Defines the five session states and explicit transitions with triggers.
Handlers never assign ``session.state`` directly; they fire a trigger and
the machine either moves the session or rejects the transition with a
clear error listing what is allowed.

Usage:
    machine = SessionStateMachine()
    machine.transition(session, TransitionTrigger.LOGIN_STARTED)
    assert session.state == ConversationState.LOGGING_IN
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from medrelay.schemas.session_schema import ConversationState, Session

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Events that cause state transitions."""
    REGISTER_STARTED = "register_started"
    OTP_VERIFIED = "otp_verified"
    LOGIN_STARTED = "login_started"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGOUT = "logout"
    SUPPORT_REQUESTED = "support_requested"
    CHAT_ENDED = "chat_ended"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: ConversationState
    to_state: ConversationState
    trigger: TransitionTrigger
    guard: Optional[Callable[[Session], bool]] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


def _authenticated(session: Session) -> bool:
    return session.data.is_authenticated


def _anonymous(session: Session) -> bool:
    return not session.data.is_authenticated


_S = ConversationState
_T = TransitionTrigger


class SessionStateMachine:
    """
    Deterministic state machine over ``Session.state``.

    The machine itself is stateless; every call operates on the session
    passed in, so one instance is shared by all conversations.
    """

    TRANSITIONS: list[Transition] = [
        # --- Registration ---
        Transition(_S.NEW, _S.REGISTERING, _T.REGISTER_STARTED),
        Transition(_S.REGISTERING, _S.REGISTERING, _T.REGISTER_STARTED),
        Transition(_S.REGISTERING, _S.LOGGED_IN, _T.OTP_VERIFIED),

        # --- Login ---
        Transition(_S.NEW, _S.LOGGING_IN, _T.LOGIN_STARTED),
        Transition(_S.LOGGING_IN, _S.LOGGING_IN, _T.LOGIN_STARTED),
        Transition(_S.NEW, _S.LOGGED_IN, _T.LOGIN_SUCCEEDED),
        Transition(_S.LOGGING_IN, _S.LOGGED_IN, _T.LOGIN_SUCCEEDED),

        # --- Logout (also cancels an unfinished registration or login) ---
        Transition(_S.LOGGED_IN, _S.NEW, _T.LOGOUT),
        Transition(_S.REGISTERING, _S.NEW, _T.LOGOUT),
        Transition(_S.LOGGING_IN, _S.NEW, _T.LOGOUT),
        Transition(_S.NEW, _S.NEW, _T.LOGOUT),

        # --- Support hand-off ---
        Transition(_S.NEW, _S.SUPPORT_CHAT, _T.SUPPORT_REQUESTED),
        Transition(_S.REGISTERING, _S.SUPPORT_CHAT, _T.SUPPORT_REQUESTED),
        Transition(_S.LOGGING_IN, _S.SUPPORT_CHAT, _T.SUPPORT_REQUESTED),
        Transition(_S.LOGGED_IN, _S.SUPPORT_CHAT, _T.SUPPORT_REQUESTED),
        Transition(_S.SUPPORT_CHAT, _S.LOGGED_IN, _T.CHAT_ENDED, guard=_authenticated),
        Transition(_S.SUPPORT_CHAT, _S.NEW, _T.CHAT_ENDED, guard=_anonymous),
    ]

    def transition(self, session: Session, trigger: TransitionTrigger) -> ConversationState:
        """
        Execute a state transition on ``session``.

        Args:
            session: The session to move.
            trigger: The event triggering the transition.

        Returns:
            The new conversation state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == session.state and t.trigger == trigger:
                if t.guard is not None and not t.guard(session):
                    continue

                old_state = session.state
                session.state = t.to_state
                logger.debug(
                    "State transition for %s: %s -> %s (trigger: %s)",
                    session.sender_id, old_state.value, session.state.value, trigger.value,
                )
                return session.state

        valid = [t.value for t in self.get_valid_triggers(session.state)]
        raise InvalidTransitionError(
            f"No valid transition from '{session.state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, session: Session, trigger: TransitionTrigger) -> bool:
        return any(
            t.from_state == session.state
            and t.trigger == trigger
            and (t.guard is None or t.guard(session))
            for t in self.TRANSITIONS
        )

    def get_valid_triggers(self, state: ConversationState) -> list[TransitionTrigger]:
        """Return all triggers valid from ``state``, without duplicates."""
        seen: list[TransitionTrigger] = []
        for t in self.TRANSITIONS:
            if t.from_state == state and t.trigger not in seen:
                seen.append(t.trigger)
        return seen
