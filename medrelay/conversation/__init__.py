from medrelay.conversation.guardrails import GuardrailPipeline
from medrelay.conversation.session_store import SessionStore
from medrelay.conversation.slot_manager import SlotManager, SlotStatus
from medrelay.conversation.state_machine import (
    InvalidTransitionError,
    SessionStateMachine,
    TransitionTrigger,
)

__all__ = [
    "SessionStateMachine",
    "TransitionTrigger",
    "InvalidTransitionError",
    "SessionStore",
    "SlotManager",
    "SlotStatus",
    "GuardrailPipeline",
]
