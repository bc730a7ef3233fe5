"""End-to-end registration, login and logout conversations."""

from datetime import datetime, timedelta, timezone

import pytest

from medrelay.config import settings
from medrelay.schemas.session_schema import ConversationState
from medrelay.tools import accounts

from conftest import CUSTOMER, GENERAL_AGENT_PHONE, ORDERS_AGENT_PHONE, login_customer, make_payload, save_session


async def say(dispatcher, text: str, sender_id: str = CUSTOMER) -> str:
    result = await dispatcher.handle_payload(make_payload(text, sender_id=sender_id))
    return result.replies[-1]


def _wrong_code(code: str) -> str:
    return "0000" if code != "0000" else "1111"


class TestRegistrationRoundTrip:
    @pytest.mark.asyncio
    async def test_complete_details_issue_code(self, dispatcher, store):
        reply = await say(dispatcher, "register A B a@b.com secret1")
        session = store.get(CUSTOMER)
        assert session.state == ConversationState.REGISTERING
        assert session.data.otp_pending is True
        assert session.data.registration_draft.email == "a@b.com"
        assert "verification code" in reply
        assert accounts.peek_otp("a@b.com") is not None
        assert not accounts.is_registered("a@b.com")

    @pytest.mark.asyncio
    async def test_correct_code_logs_in(self, dispatcher, store, notifier):
        await say(dispatcher, "register A B a@b.com secret1")
        reply = await say(dispatcher, accounts.peek_otp("a@b.com"))

        session = store.get(CUSTOMER)
        assert session.state == ConversationState.LOGGED_IN
        assert session.data.user_id is not None
        assert session.data.registration_draft is None
        assert session.data.otp_pending is False
        assert "Registration successful" in reply
        assert accounts.is_registered("a@b.com")
        for phone in (GENERAL_AGENT_PHONE, ORDERS_AGENT_PHONE):
            assert "New User Registration" in notifier.messages_to(phone)[0]

    @pytest.mark.asyncio
    async def test_incorrect_code_is_not_consumed(self, dispatcher, store):
        await say(dispatcher, "register A B a@b.com secret1")
        code = accounts.peek_otp("a@b.com")

        reply = await say(dispatcher, _wrong_code(code))
        session = store.get(CUSTOMER)
        assert "not correct" in reply
        assert session.state == ConversationState.REGISTERING
        assert session.data.otp_pending is True
        assert accounts.peek_otp("a@b.com") == code

        await say(dispatcher, code)
        assert store.get(CUSTOMER).state == ConversationState.LOGGED_IN

    @pytest.mark.asyncio
    async def test_repeated_wrong_codes_discard_code(self, dispatcher, store):
        await say(dispatcher, "register A B a@b.com secret1")
        code = accounts.peek_otp("a@b.com")

        for _ in range(settings.session.otp_max_attempts - 1):
            assert "not correct" in await say(dispatcher, _wrong_code(code))
        reply = await say(dispatcher, _wrong_code(code))

        session = store.get(CUSTOMER)
        assert "Too many incorrect codes" in reply
        assert session.data.registration_draft is None
        assert session.data.otp_pending is False
        assert accounts.peek_otp("a@b.com") is None
        assert accounts.verify_otp("a@b.com", code) == accounts.OtpCheck.MISSING
        assert not accounts.is_registered("a@b.com")

    @pytest.mark.asyncio
    async def test_expired_code_clears_draft(self, dispatcher, store, monkeypatch):
        await say(dispatcher, "register A B a@b.com secret1")
        code = accounts.peek_otp("a@b.com")
        later = datetime.now(timezone.utc) + timedelta(minutes=settings.session.otp_ttl_minutes + 1)
        monkeypatch.setattr(accounts, "_now", lambda: later)

        reply = await say(dispatcher, code)
        session = store.get(CUSTOMER)
        assert "expired" in reply
        assert session.data.registration_draft is None
        assert session.data.otp_pending is False
        assert not accounts.is_registered("a@b.com")


class TestRegistrationValidation:
    @pytest.mark.asyncio
    async def test_partial_details_list_requirements(self, dispatcher, store):
        reply = await say(dispatcher, "register Ada Obi")
        session = store.get(CUSTOMER)
        assert session.state == ConversationState.REGISTERING
        assert session.data.otp_pending is False
        assert "Email address" in reply
        assert "Password (at least 6 characters)" in reply

    @pytest.mark.asyncio
    async def test_short_password_named(self, dispatcher):
        reply = await say(dispatcher, "register Ada Obi ada@example.com 123")
        assert reply.startswith("❌ Registration failed: The password doesn't look right")

    @pytest.mark.asyncio
    async def test_existing_email_rejected(self, dispatcher, store):
        accounts.register_user("Ada Obi", "ada@example.com", "secret1", "2348030000009")
        reply = await say(dispatcher, "register Ada Obi ada@example.com secret1")
        assert reply.startswith("❌ An account with this email already exists")
        assert store.get(CUSTOMER).data.otp_pending is False

    @pytest.mark.asyncio
    async def test_already_logged_in(self, dispatcher, store):
        login_customer(store)
        reply = await say(dispatcher, "register Ada Obi ada@example.com secret1")
        assert "already registered" in reply
        assert store.get(CUSTOMER).state == ConversationState.LOGGED_IN

    @pytest.mark.asyncio
    async def test_register_while_logging_in(self, dispatcher, store):
        save_session(store, CUSTOMER, ConversationState.LOGGING_IN)
        reply = await say(dispatcher, "register Ada Obi ada@example.com secret1")
        assert "logging in" in reply
        assert store.get(CUSTOMER).state == ConversationState.LOGGING_IN

    @pytest.mark.asyncio
    async def test_code_without_pending_registration_is_not_captured(self, dispatcher, store):
        reply = await say(dispatcher, "4821")
        assert store.get(CUSTOMER).state == ConversationState.NEW
        assert "didn't understand" in reply


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_from_new(self, dispatcher, store):
        accounts.register_user("A B", "a@b.com", "secret1", CUSTOMER)
        reply = await say(dispatcher, "login a@b.com secret1")
        assert store.get(CUSTOMER).state == ConversationState.LOGGED_IN
        assert "help" in reply

    @pytest.mark.asyncio
    async def test_partial_login_then_complete(self, dispatcher, store):
        accounts.register_user("A B", "a@b.com", "secret1", CUSTOMER)
        reply = await say(dispatcher, "login")
        assert store.get(CUSTOMER).state == ConversationState.LOGGING_IN
        assert "login john@example.com mypassword" in reply

        await say(dispatcher, "login a@b.com secret1")
        assert store.get(CUSTOMER).state == ConversationState.LOGGED_IN

    @pytest.mark.asyncio
    async def test_wrong_password(self, dispatcher, store):
        accounts.register_user("A B", "a@b.com", "secret1", CUSTOMER)
        reply = await say(dispatcher, "login a@b.com wrongpass")
        assert reply.startswith("❌ Login failed: Invalid email or password")
        assert store.get(CUSTOMER).state == ConversationState.NEW
        assert store.get(CUSTOMER).data.user_id is None

    @pytest.mark.asyncio
    async def test_login_while_registering(self, dispatcher, store):
        save_session(store, CUSTOMER, ConversationState.REGISTERING)
        reply = await say(dispatcher, "login a@b.com secret1")
        assert "registering" in reply
        assert store.get(CUSTOMER).state == ConversationState.REGISTERING


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_clears_data(self, dispatcher, store):
        login_customer(store)
        await say(dispatcher, "find paracetamol")
        reply = await say(dispatcher, "logout")
        session = store.get(CUSTOMER)
        assert session.state == ConversationState.NEW
        assert session.data.user_id is None
        assert session.data.search_results == []
        assert "logged out" in reply

    @pytest.mark.asyncio
    async def test_logout_cancels_registration(self, dispatcher, store):
        await say(dispatcher, "register A B a@b.com secret1")
        await say(dispatcher, "logout")
        session = store.get(CUSTOMER)
        assert session.state == ConversationState.NEW
        assert session.data.registration_draft is None


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_reset_issues_code_for_known_account(self, dispatcher):
        accounts.register_user("Ada Obi", "ada@example.com", "secret1", CUSTOMER)
        reply = await say(dispatcher, "forgot password ada@example.com")
        assert "If an account exists for ada@example.com" in reply
        assert accounts.peek_otp("ada@example.com", purpose="password_reset") is not None

    @pytest.mark.asyncio
    async def test_reset_without_email_prompts(self, dispatcher):
        reply = await say(dispatcher, "reset password")
        assert "provide your email address" in reply
