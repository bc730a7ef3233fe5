"""Directory of support agents reachable on the channel."""

import logging
from typing import Iterable, Optional

from medrelay.errors import NoAgentAvailable, ValidationError
from medrelay.schemas.support_schema import SupportAgent, SupportRole
from medrelay.utils import normalize_phone

logger = logging.getLogger(__name__)


class SupportRoster:
    """
    Agents keyed by id with a phone-number index.

    Phone numbers are unique; sender classification compares normalized
    numbers so "+234 803..." and "234803..." refer to the same agent only
    when they normalize identically.
    """

    def __init__(self, agents: Optional[Iterable[SupportAgent]] = None) -> None:
        self._agents: dict[str, SupportAgent] = {}
        self._by_phone: dict[str, str] = {}
        for agent in agents or []:
            self.add_agent(agent)

    def add_agent(self, agent: SupportAgent) -> None:
        phone = normalize_phone(agent.phone_number)
        owner = self._by_phone.get(phone)
        if owner is not None and owner != agent.id:
            raise ValidationError(f"Phone number already assigned to agent {owner}", field_name="phone_number")
        self._agents[agent.id] = agent
        self._by_phone[phone] = agent.id
        logger.info("Support agent registered: %s (%s)", agent.name, agent.role.value)

    def set_active(self, agent_id: str, active: bool) -> None:
        agent = self.get(agent_id)
        if agent is not None:
            self._agents[agent_id] = agent.model_copy(update={"active": active})

    def get(self, agent_id: Optional[str]) -> Optional[SupportAgent]:
        return self._agents.get(agent_id) if agent_id else None

    def get_by_phone(self, phone_number: str) -> Optional[SupportAgent]:
        agent_id = self._by_phone.get(normalize_phone(phone_number))
        return self._agents.get(agent_id) if agent_id else None

    def is_agent(self, sender_id: str) -> bool:
        return self.get_by_phone(sender_id) is not None

    def active_agents(self) -> list[SupportAgent]:
        return [a for a in self._agents.values() if a.active]

    def find_active(self, role: SupportRole = SupportRole.GENERAL) -> SupportAgent:
        """First active agent for ``role``, falling back to the general team."""
        for wanted in (role, SupportRole.GENERAL):
            for agent in self._agents.values():
                if agent.active and agent.role == wanted:
                    return agent
        raise NoAgentAvailable(f"No active support agent for role '{role.value}'")

    def __len__(self) -> int:
        return len(self._agents)
