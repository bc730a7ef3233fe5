"""
Bidirectional support-chat relay.

Customer side: a session in SUPPORT_CHAT has every message forwarded
verbatim to its assigned agent. Agent side: plain text goes to the customer
whose unread message to that agent is most recent, among chats still open
with that agent; ``/chats`` and ``/end`` are commands.

Every relayed message is persisted as a ChatMessage before forwarding.
"""

from typing import Optional

from medrelay.channels.notifier import Notifier, deliver
from medrelay.conversation.session_store import SessionStore
from medrelay.conversation.state_machine import SessionStateMachine, TransitionTrigger
from medrelay.errors import NoActiveChat, NoAgentAvailable
from medrelay.logging_context import get_sender_logger
from medrelay.prompts import prompt_templates as copy
from medrelay.schemas.session_schema import ConversationState, Session
from medrelay.schemas.support_schema import (
    ChatMessage,
    RelayResult,
    SupportAgent,
    SupportRole,
)
from medrelay.support.roster import SupportRoster
from medrelay.support.transcript import ChatTranscript

logger = get_sender_logger(__name__)


class SupportRelay:
    """Connects customers to agents and forwards messages both ways."""

    def __init__(
        self,
        store: SessionStore,
        roster: SupportRoster,
        notifier: Notifier,
        transcript: Optional[ChatTranscript] = None,
        machine: Optional[SessionStateMachine] = None,
    ) -> None:
        self.store = store
        self.roster = roster
        self.notifier = notifier
        self.transcript = transcript or ChatTranscript()
        self.machine = machine or SessionStateMachine()

    # --- Hand-off ---

    async def start_chat(self, session: Session, role: SupportRole = SupportRole.GENERAL) -> SupportAgent:
        """
        Assign an agent and move ``session`` into SUPPORT_CHAT.

        The caller holds the customer's lock and saves the session.
        Raises NoAgentAvailable when neither ``role`` nor general has an active agent.
        """
        agent = self.roster.find_active(role)
        self.machine.transition(session, TransitionTrigger.SUPPORT_REQUESTED)
        session.data.assigned_agent_id = agent.id
        logger.info("Support chat opened with agent %s (%s)", agent.id, role.value)

        await deliver(
            self.notifier,
            session.sender_id,
            copy.SUPPORT_CONNECTED.format(agent_name=agent.name, role=agent.role.value),
        )
        await deliver(
            self.notifier,
            agent.phone_number,
            copy.SUPPORT_NEW_REQUEST.format(customer_id=session.sender_id),
        )
        return agent

    # --- Forwarding ---

    async def relay(self, customer_id: str, agent: SupportAgent, text: str, from_customer: bool) -> RelayResult:
        """Persist one message and forward it to the counterpart."""
        self.transcript.append(ChatMessage(
            customer_id=customer_id,
            agent_id=agent.id,
            text=text,
            from_customer=from_customer,
        ))
        if from_customer:
            recipient = agent.phone_number
            outbound = copy.SUPPORT_CUSTOMER_PREFIX.format(customer_id=customer_id, text=text)
        else:
            recipient = customer_id
            outbound = copy.SUPPORT_AGENT_PREFIX.format(text=text)
        result = await deliver(self.notifier, recipient, outbound)
        return RelayResult(
            success=result.delivered,
            message="Message sent" if result.delivered else "Message stored; delivery failed",
            customer_id=customer_id,
            agent_id=agent.id,
        )

    async def forward_from_customer(self, session: Session, text: str) -> RelayResult:
        """
        Relay a customer's message to the assigned agent.

        If the assigned agent has left the roster or gone inactive, the chat
        is closed on the in-flight session and the customer is told so.
        """
        agent = self.roster.get(session.data.assigned_agent_id)
        if agent is None or not agent.active:
            logger.warning("Assigned agent %s unavailable; closing chat", session.data.assigned_agent_id)
            self._close(session)
            return RelayResult(success=False, message=copy.SUPPORT_CHAT_ENDED_CUSTOMER, customer_id=session.sender_id)
        return await self.relay(session.sender_id, agent, text, from_customer=True)

    # --- Agent path ---

    async def handle_agent_message(self, agent_phone: str, text: str) -> RelayResult:
        """Entry point for any message sent by a roster member."""
        agent = self.roster.get_by_phone(agent_phone)
        if agent is None:
            return RelayResult(success=False, message="Sender is not a support agent")

        text = text.strip()
        if text.startswith("/"):
            return await self._handle_command(agent, text[1:].strip().lower())

        try:
            customer_id = self._reply_target(agent)
        except NoActiveChat as e:
            logger.info("Agent reply dropped: %s", e)
            await deliver(self.notifier, agent.phone_number, copy.SUPPORT_NO_ACTIVE_CHAT)
            return RelayResult(success=False, message=copy.SUPPORT_NO_ACTIVE_CHAT, agent_id=agent.id)
        return await self.relay(customer_id, agent, text, from_customer=False)

    def _reply_target(self, agent: SupportAgent) -> str:
        """
        Customer whose unread message to ``agent`` is most recent and whose
        chat with ``agent`` is still open. Threads found closed are marked
        read. Raises NoActiveChat when nothing is left to reply to.
        """
        while True:
            latest = self.transcript.latest_unread_customer_message(agent.id)
            if latest is None:
                raise NoActiveChat(f"Agent {agent.id} has no open chat to reply to")
            session = self.store.get(latest.customer_id)
            if (
                session is not None
                and session.state == ConversationState.SUPPORT_CHAT
                and session.data.assigned_agent_id == agent.id
            ):
                return latest.customer_id
            logger.info("Chat with %s is no longer open; marking it read", latest.customer_id)
            self.transcript.mark_read(agent.id, latest.customer_id)

    async def _handle_command(self, agent: SupportAgent, command: str) -> RelayResult:
        if command == "chats":
            unread = self.transcript.mark_read(agent.id)
            reply = copy.build_unread_summary(unread) if unread else copy.SUPPORT_NO_UNREAD
            await deliver(self.notifier, agent.phone_number, reply)
            return RelayResult(success=True, message=reply, agent_id=agent.id)

        if command == "end":
            customer_id = self._most_recent_thread(agent.id)
            if customer_id is None:
                await deliver(self.notifier, agent.phone_number, copy.SUPPORT_NO_ACTIVE_CHAT)
                return RelayResult(success=False, message=copy.SUPPORT_NO_ACTIVE_CHAT, agent_id=agent.id)
            return await self.end_chat(customer_id)

        await deliver(self.notifier, agent.phone_number, copy.SUPPORT_COMMANDS_HINT)
        return RelayResult(success=False, message=copy.SUPPORT_COMMANDS_HINT, agent_id=agent.id)

    def _most_recent_thread(self, agent_id: str) -> Optional[str]:
        """Customer of the most recently active thread still assigned to the agent."""
        sessions = self.store.find_by_agent(agent_id)
        if not sessions:
            return None
        customer_id = self.transcript.most_recent_customer(agent_id, (s.sender_id for s in sessions))
        if customer_id is not None:
            return customer_id
        return max(sessions, key=lambda s: s.last_activity).sender_id

    # --- Closing ---

    async def end_chat(self, customer_id: str) -> RelayResult:
        """
        Close the customer's support chat and notify both parties.

        Takes the customer's lock. Calling it for a customer without an
        active chat reports failure and changes nothing.
        """
        async with self.store.lock(customer_id):
            session = self.store.get(customer_id)
            if session is None or session.state != ConversationState.SUPPORT_CHAT:
                logger.info("end_chat for %s ignored: no active chat", customer_id)
                return RelayResult(success=False, message="No active support chat", customer_id=customer_id)

            agent = self.roster.get(session.data.assigned_agent_id)
            self._close(session)
            self.store.save(session)

        await deliver(self.notifier, customer_id, copy.SUPPORT_CHAT_ENDED_CUSTOMER)
        if agent is not None:
            await deliver(
                self.notifier, agent.phone_number,
                copy.SUPPORT_CHAT_ENDED_AGENT.format(customer_id=customer_id),
            )
        logger.info("Support chat with %s ended", customer_id)
        return RelayResult(
            success=True,
            message="Support chat ended",
            customer_id=customer_id,
            agent_id=agent.id if agent else "",
        )

    def _close(self, session: Session) -> None:
        """End the chat on ``session`` and retire its unread thread."""
        agent_id = session.data.assigned_agent_id
        self.machine.transition(session, TransitionTrigger.CHAT_ENDED)
        session.data.assigned_agent_id = None
        if agent_id:
            self.transcript.mark_read(agent_id, session.sender_id)

    # --- Team notifications ---

    async def notify_team(self, role: SupportRole, activity: str, customer_id: str, details: Optional[dict] = None) -> bool:
        """Tell the team for ``role`` (or general) about customer activity."""
        try:
            agent = self.roster.find_active(role)
        except NoAgentAvailable as e:
            logger.warning("No team notified for '%s': %s", activity, e)
            return False
        text = copy.build_team_notification(customer_id, activity, details)
        result = await deliver(self.notifier, agent.phone_number, text)
        return result.delivered

    async def notify_all_teams(self, activity: str, customer_id: str, details: Optional[dict] = None) -> int:
        """Tell every active agent. Returns the number of successful deliveries."""
        text = copy.build_team_notification(customer_id, activity, details)
        delivered = 0
        for agent in self.roster.active_agents():
            result = await deliver(self.notifier, agent.phone_number, text)
            delivered += int(result.delivered)
        return delivered
