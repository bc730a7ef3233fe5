"""
Guardrails evaluated by the dispatcher around intent resolution.

1. AuthGuardrail: blocks capabilities that need a logged-in session
2. QuickAttachGuardrail: recognises terse ``rx <orderId>`` attach commands
3. OtpCaptureGuardrail: recognises a 4-digit code while registration waits for one

Each check returns a GuardrailResult; a failed result carries the reply to send.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from medrelay.prompts.prompt_templates import AUTH_REQUIRED_MESSAGE
from medrelay.schemas.intent_schema import Intent
from medrelay.schemas.session_schema import ConversationState, Session

logger = logging.getLogger(__name__)


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "warning"  # "warning" | "block"


class AuthGuardrail:
    """Enforces which intents each session state may use."""

    LOGIN_REQUIRED = frozenset({
        Intent.ADD_TO_CART,
        Intent.PLACE_ORDER,
        Intent.TRACK_ORDER,
        Intent.BOOK_APPOINTMENT,
        Intent.PAYMENT,
        Intent.HEALTHCARE_PRODUCTS,
        Intent.DIAGNOSTIC_TESTS,
    })

    # First-touch browsing is allowed before any account exists.
    BROWSE_STATES = frozenset({ConversationState.NEW, ConversationState.LOGGED_IN})

    def check(self, intent: Intent, session: Session) -> GuardrailResult:
        if intent in self.LOGIN_REQUIRED and session.state != ConversationState.LOGGED_IN:
            return self._blocked(intent, session)
        if intent == Intent.PRODUCT_SEARCH and session.state not in self.BROWSE_STATES:
            return self._blocked(intent, session)
        return GuardrailResult(passed=True)

    def _blocked(self, intent: Intent, session: Session) -> GuardrailResult:
        logger.info(
            "Auth gate blocked '%s' for %s in state %s",
            intent.value, session.sender_id, session.state.value,
        )
        return GuardrailResult(
            passed=False,
            violation_type="auth_required",
            message=AUTH_REQUIRED_MESSAGE,
            severity="block",
        )


class QuickAttachGuardrail:
    """Matches the quick-attach command shape."""

    PATTERN = re.compile(r"^(?:rx|attach|link)\s+(\d+)$", re.IGNORECASE)

    def match(self, text: str) -> Optional[str]:
        """Return the order id when ``text`` is a quick-attach command."""
        m = self.PATTERN.match(text.strip())
        return m.group(1) if m else None


class OtpCaptureGuardrail:
    """Matches a verification code while registration is waiting for one."""

    PATTERN = re.compile(r"^\d{4}$")

    def match(self, text: str, session: Session) -> Optional[str]:
        if not session.data.otp_pending or session.state != ConversationState.REGISTERING:
            return None
        code = text.strip()
        return code if self.PATTERN.match(code) else None


class GuardrailPipeline:
    """Composes the dispatcher's guardrails."""

    def __init__(self) -> None:
        self.auth = AuthGuardrail()
        self.quick_attach = QuickAttachGuardrail()
        self.otp_capture = OtpCaptureGuardrail()
