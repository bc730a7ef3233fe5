"""Append-only log of relayed support messages."""

from typing import Iterable, Optional

from medrelay.schemas.support_schema import ChatMessage


class ChatTranscript:
    """In-memory chat history. Records are immutable; reads replace them."""

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def unread_for_agent(self, agent_id: str) -> list[ChatMessage]:
        """Unread customer-authored messages for ``agent_id``, oldest first."""
        unread = [
            m for m in self._messages
            if m.agent_id == agent_id and m.from_customer and not m.read
        ]
        return sorted(unread, key=lambda m: m.timestamp)

    def mark_read(self, agent_id: str, customer_id: Optional[str] = None) -> list[ChatMessage]:
        """Mark unread customer messages for the agent (optionally one customer) read."""
        marked = []
        for index, m in enumerate(self._messages):
            if (
                m.agent_id == agent_id
                and m.from_customer
                and not m.read
                and (customer_id is None or m.customer_id == customer_id)
            ):
                self._messages[index] = m.mark_read()
                marked.append(self._messages[index])
        return sorted(marked, key=lambda m: m.timestamp)

    def latest_unread_customer_message(self, agent_id: str) -> Optional[ChatMessage]:
        unread = self.unread_for_agent(agent_id)
        return unread[-1] if unread else None

    def latest_customer_message(self, agent_id: str, customer_id: str) -> Optional[ChatMessage]:
        thread = [
            m for m in self._messages
            if m.agent_id == agent_id and m.customer_id == customer_id and m.from_customer
        ]
        return sorted(thread, key=lambda m: m.timestamp)[-1] if thread else None

    def most_recent_customer(self, agent_id: str, customer_ids: Iterable[str]) -> Optional[str]:
        """Customer among ``customer_ids`` who last wrote to the agent."""
        candidates = set(customer_ids)
        thread = [
            m for m in self._messages
            if m.agent_id == agent_id and m.from_customer and m.customer_id in candidates
        ]
        return sorted(thread, key=lambda m: m.timestamp)[-1].customer_id if thread else None

    def thread(self, customer_id: str) -> list[ChatMessage]:
        return [m for m in self._messages if m.customer_id == customer_id]

    def __len__(self) -> int:
        return len(self._messages)
