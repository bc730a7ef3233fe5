"""Shared test fixtures and helpers."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from medrelay.channels.notifier import Notifier
from medrelay.conversation import session_store
from medrelay.conversation.guardrails import GuardrailPipeline
from medrelay.conversation.session_store import SessionStore
from medrelay.conversation.slot_manager import REGISTRATION_SLOTS, SlotManager
from medrelay.conversation.state_machine import SessionStateMachine
from medrelay.dispatcher import ConversationDispatcher
from medrelay.intent.resolver import IntentResolver
from medrelay.schemas.event_schema import DeliveryResult
from medrelay.schemas.session_schema import ConversationState, Session
from medrelay.schemas.support_schema import SupportAgent, SupportRole
from medrelay.support.relay import SupportRelay
from medrelay.support.roster import SupportRoster
from medrelay.tools import accounts, catalog, doctors

CUSTOMER = "2348030000001"
OTHER_CUSTOMER = "2348030000002"
GENERAL_AGENT_PHONE = "2348090000001"
ORDERS_AGENT_PHONE = "2348090000002"


class RecordingNotifier(Notifier):
    """Captures outbound messages instead of sending them."""

    def __init__(self, failing: Optional[set[str]] = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.failing = failing or set()

    async def send(self, recipient_id: str, text: str) -> DeliveryResult:
        self.sent.append((recipient_id, text))
        if recipient_id in self.failing:
            return DeliveryResult(recipient_id=recipient_id, delivered=False, error="HTTP 500")
        return DeliveryResult(recipient_id=recipient_id, delivered=True, message_id=uuid.uuid4().hex)

    def messages_to(self, recipient_id: str) -> list[str]:
        return [text for to, text in self.sent if to == recipient_id]

    def clear(self) -> None:
        self.sent.clear()


class FakeClock:
    """Settable replacement for the session store's clock."""

    def __init__(self) -> None:
        self.now = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_mock_services():
    accounts.reset()
    catalog.reset()
    doctors.reset()
    yield
    accounts.reset()
    catalog.reset()
    doctors.reset()


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(session_store, "_now", fake)
    return fake


@pytest.fixture
def state_machine():
    return SessionStateMachine()


@pytest.fixture
def registration_form():
    return SlotManager(REGISTRATION_SLOTS)


@pytest.fixture
def guardrail_pipeline():
    return GuardrailPipeline()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def roster():
    return SupportRoster([
        SupportAgent(id="AG-1", name="Chioma", phone_number=GENERAL_AGENT_PHONE, role=SupportRole.GENERAL),
        SupportAgent(id="AG-2", name="Emeka", phone_number=ORDERS_AGENT_PHONE, role=SupportRole.ORDERS),
    ])


@pytest.fixture
def relay(store, roster, notifier):
    return SupportRelay(store=store, roster=roster, notifier=notifier)


@pytest.fixture
def dispatcher(store, relay, notifier):
    return ConversationDispatcher(
        store=store,
        resolver=IntentResolver(),
        relay=relay,
        notifier=notifier,
    )


def make_payload(
    text: str = "",
    sender_id: str = CUSTOMER,
    attachment_ref: Optional[str] = None,
) -> dict:
    """Helper to create a raw inbound event payload."""
    payload = {"senderId": sender_id, "messageId": uuid.uuid4().hex, "text": text}
    if attachment_ref is not None:
        payload["attachmentRef"] = attachment_ref
    return payload


def login_customer(
    store: SessionStore,
    sender_id: str = CUSTOMER,
    email: str = "ada@example.com",
    password: str = "secret1",
) -> Session:
    """Create an account and persist a LOGGED_IN session for it."""
    result = accounts.register_user("Ada Obi", email, password, sender_id)
    session = store.get_or_create(sender_id)
    session.state = ConversationState.LOGGED_IN
    session.data.user_id = result.user_id
    session.data.auth_token = result.token
    store.save(session)
    return session


def save_session(store: SessionStore, sender_id: str, state: ConversationState, **data) -> Session:
    """Persist a session in ``state`` with the given data fields."""
    session = store.get_or_create(sender_id)
    session.state = state
    for name, value in data.items():
        setattr(session.data, name, value)
    store.save(session)
    return session
