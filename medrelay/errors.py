"""
Error taxonomy for the conversation core.

Handlers translate ValidationError and NotFound into user-facing replies.
UpstreamFailure is logged and degraded. ProtocolViolation is dropped at the
dispatcher boundary with a transport-level ack only.
"""


class MedRelayError(Exception):
    """Base class for all conversation-core errors."""


class ValidationError(MedRelayError):
    """Missing or malformed user input. The message names the field."""

    def __init__(self, message: str, field_name: str = "") -> None:
        super().__init__(message)
        self.field_name = field_name


class AuthRequired(MedRelayError):
    """The requested capability needs an authenticated session."""


class NotFound(MedRelayError):
    """An order, doctor, product or chat does not exist."""


class NoAgentAvailable(NotFound):
    """No active support agent exists for the requested role or as fallback."""


class NoActiveChat(NotFound):
    """No support thread is open for this customer or agent."""


class UpstreamFailure(MedRelayError):
    """A consumed capability errored or timed out."""


class ProtocolViolation(MedRelayError):
    """An inbound event was malformed."""
