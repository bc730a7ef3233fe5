"""
Account capabilities: greeting, help, registration with email code, login,
logout and password reset.

Registration is two-step. A complete ``register`` message stores a draft and
issues a 4-digit code; the dispatcher routes the code back here through
``verify_registration_code`` while the session waits in REGISTERING.
"""

import logging
from typing import Optional

from medrelay.config import settings
from medrelay.conversation.slot_manager import LOGIN_SLOTS, REGISTRATION_SLOTS, SlotManager
from medrelay.conversation.state_machine import TransitionTrigger
from medrelay.errors import ValidationError
from medrelay.handlers.base import HandlerContext
from medrelay.prompts.prompt_templates import HELP_MESSAGE, default_message
from medrelay.schemas.session_schema import ConversationState, RegistrationDraft
from medrelay.tools import accounts
from medrelay.tools.accounts import OtpCheck
from medrelay.utils import normalize_phone

logger = logging.getLogger(__name__)

_biz = settings.business


async def handle_greeting(ctx: HandlerContext) -> str:
    if ctx.session.state == ConversationState.NEW:
        return (
            f"Welcome to {_biz.name}! Your health companion in Africa. Are you a new user? "
            "Reply 'register' to sign up or 'login' if you already have an account."
        )
    return (
        "Welcome back! How can I assist you today? You can ask me about medicines, "
        "doctors, orders, or type 'help' for assistance."
    )


async def handle_help(ctx: HandlerContext) -> str:
    return HELP_MESSAGE


async def handle_register(ctx: HandlerContext) -> str:
    session = ctx.session
    if session.state == ConversationState.LOGGED_IN:
        return "You're already registered. Type 'help' to see available services."
    if session.state == ConversationState.LOGGING_IN:
        return "You're in the middle of logging in. Type 'logout' to cancel, then 'register'."

    ctx.machine.transition(session, TransitionTrigger.REGISTER_STARTED)
    form = SlotManager(REGISTRATION_SLOTS)
    form.fill(ctx.parameters)

    if form.get_missing_slots():
        return (
            "📝 To register, please send your details in one message:\n"
            "Example: 'register John Doe john@example.com mypassword'\n\n"
            "Requirements:\n" + form.get_missing_summary()
        )
    try:
        values = form.require_complete()
    except ValidationError as e:
        return f"❌ Registration failed: {e}"

    if accounts.is_registered(values["email"]):
        raise ValidationError(
            "An account with this email already exists. Type 'login' to sign in.",
            field_name="email",
        )

    session.data.registration_draft = RegistrationDraft(
        name=values["name"], email=values["email"], password=values["password"],
    )
    accounts.issue_otp(values["email"])
    session.data.otp_pending = True
    return (
        f"📧 We've sent a 4-digit verification code to {values['email']}.\n\n"
        f"Reply with the code within {settings.session.otp_ttl_minutes} minutes "
        "to complete your registration."
    )


async def verify_registration_code(ctx: HandlerContext, code: str) -> str:
    session = ctx.session
    draft = session.data.registration_draft
    if draft is None:
        session.data.clear_registration()
        return "There is no registration waiting for a code. Type 'register' to start again."

    check = accounts.verify_otp(draft.email, code)
    if check == OtpCheck.INVALID:
        logger.info("Invalid registration code for %s", session.sender_id)
        return f"❌ That code is not correct. Please check the code we sent to {draft.email} and try again."
    if check == OtpCheck.LOCKED:
        logger.warning("Registration code locked for %s after repeated wrong attempts", session.sender_id)
        session.data.clear_registration()
        return "🔒 Too many incorrect codes. Please register again to get a new code."
    if check in (OtpCheck.EXPIRED, OtpCheck.MISSING):
        session.data.clear_registration()
        return "⌛ Your verification code has expired. Please register again."

    result = accounts.register_user(
        draft.name, draft.email, draft.password, normalize_phone(session.sender_id),
    )
    session.data.user_id = result.user_id
    session.data.auth_token = result.token
    session.data.clear_registration()
    ctx.machine.transition(session, TransitionTrigger.OTP_VERIFIED)

    await ctx.relay.notify_all_teams(
        "New User Registration", session.sender_id, {"Name": draft.name, "Email": draft.email},
    )
    return (
        f"✅ Registration successful! Welcome to {_biz.name}, {result.name}. "
        "You can now access all our services. Type 'help' to get started!"
    )


async def handle_login(ctx: HandlerContext) -> str:
    session = ctx.session
    if session.state == ConversationState.LOGGED_IN:
        return "You're already logged in. Type 'help' to see available services."
    if session.state == ConversationState.REGISTERING:
        return "You're in the middle of registering. Type 'logout' to cancel, then 'login'."

    form = SlotManager(LOGIN_SLOTS)
    form.fill(ctx.parameters)

    if form.get_missing_slots():
        ctx.machine.transition(session, TransitionTrigger.LOGIN_STARTED)
        return (
            "🔐 To login, send your credentials in one message:\n"
            "Example: 'login john@example.com mypassword'\n\n" + form.get_missing_summary()
        )
    try:
        values = form.require_complete()
        result = accounts.login_user(values["email"], values["password"])
    except ValidationError as e:
        logger.info("Login failed for %s (%s)", session.sender_id, e.field_name or "-")
        return f"❌ Login failed: {e}"

    session.data.user_id = result.user_id
    session.data.auth_token = result.token
    ctx.machine.transition(session, TransitionTrigger.LOGIN_SUCCEEDED)
    return f"✅ Login successful! Welcome back to {_biz.name}, {result.name}. Type 'help' to see what you can do."


async def handle_logout(ctx: HandlerContext) -> str:
    ctx.machine.transition(ctx.session, TransitionTrigger.LOGOUT)
    ctx.session.data.clear()
    return "👋 You have been logged out successfully.\n\nType 'help' to get started again or 'login' to sign back in."


async def handle_password_reset(ctx: HandlerContext) -> Optional[str]:
    email = ctx.param("email")
    if not email:
        return default_message("password_reset")
    accounts.request_password_reset(email)
    return (
        f"If an account exists for {email.lower()}, we've sent a reset code to it. "
        "Follow the instructions in the email to choose a new password."
    )
