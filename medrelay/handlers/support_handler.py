"""Support hand-off: connect the customer with an agent."""

import logging
from typing import Optional

from medrelay.errors import NoAgentAvailable
from medrelay.handlers.base import HandlerContext
from medrelay.prompts.prompt_templates import SUPPORT_NO_AGENT
from medrelay.schemas.support_schema import SupportRole

logger = logging.getLogger(__name__)


def _role(raw: str) -> SupportRole:
    try:
        return SupportRole(raw.lower())
    except ValueError:
        return SupportRole.GENERAL


async def handle_support_request(ctx: HandlerContext) -> Optional[str]:
    """Start a relayed chat. The relay greets the customer itself."""
    role = _role(ctx.param("role") or "general")
    try:
        await ctx.relay.start_chat(ctx.session, role)
    except NoAgentAvailable:
        logger.warning("No support agent available for %s", role.value)
        return SUPPORT_NO_AGENT
    return None
