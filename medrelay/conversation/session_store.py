"""
In-memory session store with idle expiry and per-sender locks.

Sessions are handed out as detached copies: changes only become durable
when ``save`` is called, so a turn that fails before saving leaves the
last persisted state untouched and the next message resumes from it.

Usage:
    store = SessionStore()
    async with store.lock(sender_id):
        session = store.get_or_create(sender_id)
        ...
        store.save(session)
"""

import asyncio
import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from medrelay.config import settings
from medrelay.schemas.session_schema import ConversationState, Session

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Durable per-sender state keyed by sender id."""

    def __init__(self, idle_ttl: Optional[timedelta] = None) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._idle_ttl = idle_ttl or timedelta(minutes=settings.session.idle_ttl_minutes)

    @property
    def idle_ttl(self) -> timedelta:
        return self._idle_ttl

    def lock(self, sender_id: str) -> asyncio.Lock:
        """Return the lock serializing all work on one sender's session."""
        lock = self._locks.get(sender_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[sender_id] = lock
        return lock

    def _is_expired(self, session: Session, now: datetime) -> bool:
        return now - session.last_activity > self._idle_ttl

    def get(self, sender_id: str) -> Optional[Session]:
        """Return a copy of the stored session, or None if absent or expired."""
        stored = self._sessions.get(sender_id)
        if stored is None or self._is_expired(stored, _now()):
            return None
        return copy.deepcopy(stored)

    def get_or_create(self, sender_id: str) -> Session:
        """Return the sender's session, creating a fresh NEW one when needed."""
        existing = self.get(sender_id)
        if existing is not None:
            return existing

        if sender_id in self._sessions:
            logger.info("Session for %s expired after idle TTL; starting fresh", sender_id)
        now = _now()
        session = Session(sender_id=sender_id, last_activity=now, created_at=now)
        self._sessions[sender_id] = copy.deepcopy(session)
        logger.debug("Session created for %s", sender_id)
        return session

    def save(self, session: Session) -> None:
        """Persist the session and refresh its last activity."""
        session.last_activity = _now()
        self._sessions[session.sender_id] = copy.deepcopy(session)

    def delete(self, sender_id: str) -> None:
        self._sessions.pop(sender_id, None)

    def find_by_agent(self, agent_id: str) -> list[Session]:
        """Sessions currently in a support chat assigned to ``agent_id``."""
        now = _now()
        return [
            copy.deepcopy(s)
            for s in self._sessions.values()
            if s.state == ConversationState.SUPPORT_CHAT
            and s.data.assigned_agent_id == agent_id
            and not self._is_expired(s, now)
        ]

    def purge_expired(self) -> int:
        """Delete expired sessions and their idle locks. Returns the count removed."""
        now = _now()
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for sender_id in expired:
            del self._sessions[sender_id]
            lock = self._locks.get(sender_id)
            if lock is not None and not lock.locked():
                del self._locks[sender_id]
        if expired:
            logger.info("Purged %d expired session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
