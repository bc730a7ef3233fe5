"""Tests for the dispatcher guardrails."""

import pytest

from medrelay.conversation.guardrails import AuthGuardrail, OtpCaptureGuardrail, QuickAttachGuardrail
from medrelay.prompts.prompt_templates import AUTH_REQUIRED_MESSAGE
from medrelay.schemas.intent_schema import Intent
from medrelay.schemas.session_schema import ConversationState, Session


def _session(state: ConversationState, otp_pending: bool = False) -> Session:
    session = Session(sender_id="2348030000001", state=state)
    session.data.otp_pending = otp_pending
    return session


class TestAuthGuardrail:
    def setup_method(self):
        self.guard = AuthGuardrail()

    @pytest.mark.parametrize("intent", sorted(AuthGuardrail.LOGIN_REQUIRED, key=lambda i: i.value))
    def test_protected_intents_blocked_when_new(self, intent):
        result = self.guard.check(intent, _session(ConversationState.NEW))
        assert result.passed is False
        assert result.violation_type == "auth_required"
        assert result.severity == "block"
        assert result.message == AUTH_REQUIRED_MESSAGE

    @pytest.mark.parametrize("intent", sorted(AuthGuardrail.LOGIN_REQUIRED, key=lambda i: i.value))
    def test_protected_intents_pass_when_logged_in(self, intent):
        assert self.guard.check(intent, _session(ConversationState.LOGGED_IN)).passed is True

    def test_product_search_allowed_when_new(self):
        assert self.guard.check(Intent.PRODUCT_SEARCH, _session(ConversationState.NEW)).passed is True

    def test_product_search_blocked_while_registering(self):
        result = self.guard.check(Intent.PRODUCT_SEARCH, _session(ConversationState.REGISTERING))
        assert result.passed is False

    def test_product_search_blocked_while_logging_in(self):
        result = self.guard.check(Intent.PRODUCT_SEARCH, _session(ConversationState.LOGGING_IN))
        assert result.passed is False

    @pytest.mark.parametrize("intent", [
        Intent.GREETING, Intent.HELP, Intent.REGISTER, Intent.LOGIN, Intent.LOGOUT,
        Intent.SEARCH_DOCTORS, Intent.SUPPORT, Intent.PASSWORD_RESET,
        Intent.PRESCRIPTION_UPLOAD, Intent.UNKNOWN,
    ])
    def test_open_intents_never_blocked(self, intent):
        assert self.guard.check(intent, _session(ConversationState.NEW)).passed is True


class TestQuickAttachGuardrail:
    def setup_method(self):
        self.guard = QuickAttachGuardrail()

    def test_rx_command(self):
        assert self.guard.match("rx 10001") == "10001"

    def test_attach_and_link_aliases(self):
        assert self.guard.match("attach 10002") == "10002"
        assert self.guard.match("LINK 10003") == "10003"

    def test_surrounding_whitespace(self):
        assert self.guard.match("  rx 10001  ") == "10001"

    def test_requires_numeric_order_id(self):
        assert self.guard.match("rx abc") is None

    def test_rejects_extra_words(self):
        assert self.guard.match("rx 10001 please") is None

    def test_bare_keyword_is_not_a_command(self):
        assert self.guard.match("rx") is None


class TestOtpCaptureGuardrail:
    def setup_method(self):
        self.guard = OtpCaptureGuardrail()

    def test_captures_code_while_pending(self):
        session = _session(ConversationState.REGISTERING, otp_pending=True)
        assert self.guard.match("4821", session) == "4821"

    def test_ignores_code_when_not_pending(self):
        session = _session(ConversationState.REGISTERING)
        assert self.guard.match("4821", session) is None

    def test_ignores_code_outside_registration(self):
        session = _session(ConversationState.LOGGED_IN, otp_pending=True)
        assert self.guard.match("4821", session) is None

    def test_wrong_length_not_captured(self):
        session = _session(ConversationState.REGISTERING, otp_pending=True)
        assert self.guard.match("482", session) is None
        assert self.guard.match("48213", session) is None

    def test_menu_digit_not_captured(self):
        session = _session(ConversationState.REGISTERING, otp_pending=True)
        assert self.guard.match("3", session) is None


class TestPipeline:
    def test_pipeline_composes_guards(self, guardrail_pipeline):
        assert isinstance(guardrail_pipeline.auth, AuthGuardrail)
        assert isinstance(guardrail_pipeline.quick_attach, QuickAttachGuardrail)
        assert isinstance(guardrail_pipeline.otp_capture, OtpCaptureGuardrail)
