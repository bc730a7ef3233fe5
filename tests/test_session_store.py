"""Tests for the in-memory session store."""

import asyncio
from datetime import timedelta

import pytest

from medrelay.conversation.session_store import SessionStore
from medrelay.schemas.session_schema import ConversationState

from conftest import CUSTOMER, OTHER_CUSTOMER, save_session


class TestGetOrCreate:
    def test_creates_new_session(self, store):
        session = store.get_or_create(CUSTOMER)
        assert session.sender_id == CUSTOMER
        assert session.state == ConversationState.NEW

    def test_is_idempotent(self, store):
        first = store.get_or_create(CUSTOMER)
        first.state = ConversationState.LOGGED_IN
        store.save(first)
        second = store.get_or_create(CUSTOMER)
        assert second.state == ConversationState.LOGGED_IN
        assert len(store) == 1

    def test_get_missing_returns_none(self, store):
        assert store.get("nobody") is None


class TestDetachedCopies:
    def test_unsaved_changes_are_not_persisted(self, store):
        session = store.get_or_create(CUSTOMER)
        session.state = ConversationState.LOGGED_IN
        session.data.user_id = "U-1"
        reloaded = store.get(CUSTOMER)
        assert reloaded.state == ConversationState.NEW
        assert reloaded.data.user_id is None

    def test_save_persists(self, store):
        session = store.get_or_create(CUSTOMER)
        session.data.pending_attachment_ref = "media-1"
        store.save(session)
        assert store.get(CUSTOMER).data.pending_attachment_ref == "media-1"

    def test_delete(self, store):
        store.save(store.get_or_create(CUSTOMER))
        store.delete(CUSTOMER)
        assert store.get(CUSTOMER) is None
        store.delete(CUSTOMER)


class TestIdleExpiry:
    def test_expired_session_is_recreated(self, clock):
        store = SessionStore(idle_ttl=timedelta(minutes=30))
        save_session(store, CUSTOMER, ConversationState.LOGGED_IN, user_id="U-1")
        clock.advance(minutes=31)
        assert store.get(CUSTOMER) is None
        fresh = store.get_or_create(CUSTOMER)
        assert fresh.state == ConversationState.NEW
        assert fresh.data.user_id is None

    def test_save_refreshes_activity(self, clock):
        store = SessionStore(idle_ttl=timedelta(minutes=30))
        session = save_session(store, CUSTOMER, ConversationState.LOGGED_IN)
        clock.advance(minutes=20)
        store.save(session)
        clock.advance(minutes=20)
        assert store.get(CUSTOMER).state == ConversationState.LOGGED_IN

    def test_purge_expired(self, clock):
        store = SessionStore(idle_ttl=timedelta(minutes=30))
        store.get_or_create(CUSTOMER)
        clock.advance(minutes=31)
        store.get_or_create(OTHER_CUSTOMER)
        assert store.purge_expired() == 1
        assert len(store) == 1


class TestFindByAgent:
    def test_only_support_chats_for_agent(self, store):
        save_session(store, CUSTOMER, ConversationState.SUPPORT_CHAT, assigned_agent_id="AG-1")
        save_session(store, OTHER_CUSTOMER, ConversationState.SUPPORT_CHAT, assigned_agent_id="AG-2")
        save_session(store, "2348030000003", ConversationState.LOGGED_IN, assigned_agent_id="AG-1")
        found = store.find_by_agent("AG-1")
        assert [s.sender_id for s in found] == [CUSTOMER]


class TestLocks:
    def test_same_sender_shares_lock(self, store):
        assert store.lock(CUSTOMER) is store.lock(CUSTOMER)

    def test_different_senders_have_different_locks(self, store):
        assert store.lock(CUSTOMER) is not store.lock(OTHER_CUSTOMER)

    @pytest.mark.asyncio
    async def test_lock_serializes_turns(self, store):
        order = []

        async def turn(name: str, delay: float):
            async with store.lock(CUSTOMER):
                order.append(f"{name}-start")
                await asyncio.sleep(delay)
                order.append(f"{name}-end")

        await asyncio.gather(turn("a", 0.02), turn("b", 0.0))
        assert order == ["a-start", "a-end", "b-start", "b-end"]
