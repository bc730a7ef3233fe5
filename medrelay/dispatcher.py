"""
Per-message orchestration for the channel.

Order per inbound event:
    0. validate the event; roster members take the agent path
    1. overrides: support passthrough, staged attachment, quick-attach, OTP capture
    2. intent resolution
    3. auth gate
    4. capability handler
    5. session save, then delivery

All work on one customer's session runs under that sender's lock. Each turn
is exception-isolated: an unexpected failure becomes one generic apology
and the last saved session is left as it was. Every few customer turns the
store is swept for sessions past their idle TTL.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from medrelay.channels.notifier import ConsoleNotifier, Notifier, deliver
from medrelay.config import settings
from medrelay.conversation.guardrails import GuardrailPipeline
from medrelay.conversation.session_store import SessionStore
from medrelay.conversation.state_machine import SessionStateMachine
from medrelay.errors import AuthRequired, NotFound, ProtocolViolation, UpstreamFailure, ValidationError
from medrelay.handlers import commerce_handlers
from medrelay.handlers.account_handlers import verify_registration_code
from medrelay.handlers.base import HandlerContext
from medrelay.handlers.registry import get_handler
from medrelay.intent.resolver import IntentResolver, build_resolver
from medrelay.logging_context import get_sender_logger, set_sender_id
from medrelay.prompts.prompt_templates import (
    AUTH_REQUIRED_MESSAGE,
    GENERIC_APOLOGY,
    SUPPORT_ATTACHMENT_NOTE,
    default_message,
    format_with_options,
)
from medrelay.schemas.event_schema import InboundEvent
from medrelay.schemas.intent_schema import Intent
from medrelay.schemas.session_schema import ConversationState, Session
from medrelay.support.relay import SupportRelay
from medrelay.support.roster import SupportRoster

logger = get_sender_logger(__name__)

UPSTREAM_APOLOGY = "Sorry, that service is unavailable right now. Please try again in a few minutes."


@dataclass
class DispatchResult:
    """What happened to one inbound event. The transport acks regardless."""
    sender_id: str = ""
    path: str = "customer"  # "customer" | "agent" | "dropped"
    intent: Optional[Intent] = None
    replies: list[str] = field(default_factory=list)
    saved: bool = False
    error: Optional[str] = None


@dataclass
class _Turn:
    replies: list[str] = field(default_factory=list)
    intent: Optional[Intent] = None
    save: bool = True
    with_options: bool = True


class ConversationDispatcher:
    """Routes inbound events to the relay or to capability handlers."""

    def __init__(
        self,
        store: SessionStore,
        resolver: IntentResolver,
        relay: SupportRelay,
        notifier: Notifier,
        guardrails: Optional[GuardrailPipeline] = None,
        machine: Optional[SessionStateMachine] = None,
        purge_every: Optional[int] = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.relay = relay
        self.notifier = notifier
        self.guardrails = guardrails or GuardrailPipeline()
        self.machine = machine or relay.machine
        self.purge_every = purge_every or settings.session.purge_every_turns
        self._turns = 0

    @property
    def roster(self) -> SupportRoster:
        return self.relay.roster

    async def handle_payload(self, payload: Any) -> DispatchResult:
        """Validate a raw event payload and dispatch it. Malformed payloads are dropped."""
        try:
            event = InboundEvent.from_payload(payload)
        except ProtocolViolation as e:
            logger.warning("Dropping inbound event: %s", e)
            return DispatchResult(path="dropped", error=str(e))
        return await self.handle_event(event)

    async def handle_event(self, event: InboundEvent) -> DispatchResult:
        set_sender_id(event.sender_id)
        if self.roster.is_agent(event.sender_id):
            return await self._handle_agent(event)
        return await self._handle_customer(event)

    # --- Agent path ---

    async def _handle_agent(self, event: InboundEvent) -> DispatchResult:
        result = DispatchResult(sender_id=event.sender_id, path="agent")
        if not event.text.strip():
            return result
        try:
            outcome = await self.relay.handle_agent_message(event.sender_id, event.text)
        except Exception:
            logger.exception("Agent message from %s failed", event.sender_id)
            await deliver(self.notifier, event.sender_id, GENERIC_APOLOGY)
            result.error = "internal"
            return result
        result.replies.append(outcome.message)
        return result

    # --- Customer path ---

    async def _handle_customer(self, event: InboundEvent) -> DispatchResult:
        self._housekeep()
        result = DispatchResult(sender_id=event.sender_id)
        async with self.store.lock(event.sender_id):
            try:
                session = self.store.get_or_create(event.sender_id)
                turn = await self._process(session, event)
            except Exception:
                logger.exception("Turn failed for %s", event.sender_id)
                result.error = "internal"
                await deliver(self.notifier, event.sender_id, GENERIC_APOLOGY)
                return result

            result.intent = turn.intent
            if turn.save:
                try:
                    self.store.save(session)
                    result.saved = True
                except Exception:
                    logger.exception("Session save failed for %s", event.sender_id)
                    result.error = "save_failed"
                    await deliver(self.notifier, event.sender_id, GENERIC_APOLOGY)
                    return result

            logged_in = session.state == ConversationState.LOGGED_IN
            for reply in turn.replies:
                text = format_with_options(reply, logged_in) if turn.with_options else reply
                result.replies.append(text)
                await deliver(self.notifier, event.sender_id, text)
        return result

    def _housekeep(self) -> None:
        """Drop idle sessions every ``purge_every`` customer turns."""
        self._turns += 1
        if self._turns % self.purge_every == 0:
            self.store.purge_expired()

    def _context(self, session: Session, parameters: Optional[dict] = None, intent_result=None) -> HandlerContext:
        return HandlerContext(
            session=session,
            relay=self.relay,
            machine=self.machine,
            parameters=parameters or {},
            result=intent_result,
        )

    async def _process(self, session: Session, event: InboundEvent) -> _Turn:
        text = event.text.strip()

        # 1a. Support passthrough: never classified.
        if session.state == ConversationState.SUPPORT_CHAT:
            if event.attachment_ref:
                # Staged too, so it can still be linked to an order after the chat.
                session.data.pending_attachment_ref = event.attachment_ref
                note = SUPPORT_ATTACHMENT_NOTE.format(ref=event.attachment_ref)
                relayed = f"{note}\n{event.text}" if text else note
            elif text:
                relayed = event.text
            else:
                return _Turn(with_options=False)
            outcome = await self.relay.forward_from_customer(session, relayed)
            # A closed chat (agent gone) is the only case the customer hears back.
            replies = [outcome.message] if session.state != ConversationState.SUPPORT_CHAT else []
            return _Turn(replies=replies, intent=Intent.SUPPORT, with_options=False)

        ctx = self._context(session)

        if event.attachment_ref:
            reply = await commerce_handlers.handle_attachment(ctx, event.attachment_ref)
            return _Turn(replies=[reply], intent=Intent.PRESCRIPTION_UPLOAD)

        # 1b. Quick-attach.
        order_id = self.guardrails.quick_attach.match(text)
        if order_id is not None:
            reply = await self._run(commerce_handlers.handle_quick_attach, ctx, order_id)
            return _Turn(replies=[reply], intent=Intent.PRESCRIPTION_UPLOAD)

        # 1c. Verification code while registration waits for one.
        code = self.guardrails.otp_capture.match(text, session)
        if code is not None:
            reply = await self._run(verify_registration_code, ctx, code)
            return _Turn(replies=[reply], intent=Intent.REGISTER)

        # 2. Intent.
        intent_result = await self.resolver.resolve(text, session)
        logger.info(
            "Intent '%s' (source=%s, confidence=%.2f)",
            intent_result.intent.value, intent_result.source.value, intent_result.confidence,
        )

        # 3. Auth gate. A blocked turn leaves the session untouched.
        gate = self.guardrails.auth.check(intent_result.intent, session)
        if not gate.passed:
            return _Turn(replies=[gate.message], intent=intent_result.intent, save=False, with_options=False)

        # 4. Capability.
        handler = get_handler(intent_result.intent)
        if handler is None:
            reply = intent_result.fulfillment_text or default_message(intent_result.intent.value)
            return _Turn(replies=[reply], intent=intent_result.intent)

        ctx = self._context(session, intent_result.parameters, intent_result)
        reply = await self._run(handler, ctx)
        replies = [reply] if reply else []
        return _Turn(replies=replies, intent=intent_result.intent)

    async def _run(self, handler, ctx: HandlerContext, *args) -> Optional[str]:
        """Invoke a handler, turning user-facing errors into replies."""
        try:
            return await handler(ctx, *args)
        except ValidationError as e:
            logger.info("Validation failed (%s): %s", e.field_name or "-", e)
            return f"❌ {e}"
        except NotFound as e:
            logger.info("Not found: %s", e)
            return f"❌ {e}"
        except AuthRequired:
            logger.warning("Session %s has no account for a gated capability", ctx.sender_id)
            return AUTH_REQUIRED_MESSAGE
        except UpstreamFailure:
            logger.exception("Upstream capability failed")
            return UPSTREAM_APOLOGY


def build_dispatcher(
    notifier: Optional[Notifier] = None,
    roster: Optional[SupportRoster] = None,
    resolver: Optional[IntentResolver] = None,
    store: Optional[SessionStore] = None,
) -> ConversationDispatcher:
    """Wire a dispatcher with in-memory state and the configured resolver."""
    store = store or SessionStore()
    notifier = notifier or ConsoleNotifier()
    relay = SupportRelay(store=store, roster=roster or SupportRoster(), notifier=notifier)
    return ConversationDispatcher(
        store=store,
        resolver=resolver or build_resolver(),
        relay=relay,
        notifier=notifier,
    )
