"""
Offline console demo: drives real conversations without any API keys.

Customer and agent messages go through the real dispatcher, session store,
intent matcher, relay and mock tools. Outbound messages are printed by the
console notifier instead of being sent to WhatsApp.

Usage:
    python console_demo.py
    python console_demo.py --scenario registration
    python console_demo.py --scenario shopping
    python console_demo.py --scenario support

In interactive mode, prefix a line with "agent:" to speak as the support agent.
"""

import argparse
import asyncio
import uuid

from medrelay.channels.notifier import ConsoleNotifier
from medrelay.config import settings
from medrelay.dispatcher import ConversationDispatcher, build_dispatcher
from medrelay.intent.resolver import IntentResolver
from medrelay.schemas.support_schema import SupportAgent, SupportRole
from medrelay.support.roster import SupportRoster
from medrelay.tools import accounts

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

CUSTOMER = "2348030000001"
AGENT_PHONE = "2348090000009"

OTP_PLACEHOLDER = "<otp>"


class ConsoleSession:
    """Simulates a customer and one support agent in the terminal."""

    # Pre-scripted scenarios for --scenario flag: (speaker, text)
    SCENARIOS: dict[str, list[tuple[str, str]]] = {
        "registration": [
            ("customer", "hi"),
            ("customer", "register Ada Obi"),
            ("customer", "register Ada Obi ada@example.com secret1"),
            ("customer", "0000"),
            ("customer", OTP_PLACEHOLDER),
            ("customer", "help"),
            ("customer", "logout"),
        ],
        "shopping": [
            ("customer", "login ada@example.com secret1"),
            ("customer", "find paracetamol"),
            ("customer", "add 1 2"),
            ("customer", "order 12 Allen Avenue, Ikeja pay with Paystack"),
            ("customer", "track 10001"),
            ("customer", "[attachment]"),
            ("customer", "rx 10001"),
            ("customer", "find a cardiologist"),
            ("customer", "book 1 2030-06-15 14:00"),
        ],
        "support": [
            ("customer", "hello"),
            ("customer", "3"),
            ("customer", "connect me to support"),
            ("customer", "My delivery is late, can you help?"),
            ("agent", "/chats"),
            ("agent", "/help"),
            ("customer", "It was ordered two days ago"),
            ("agent", "Sorry about that! It is out for delivery today."),
            ("agent", "/end"),
            ("customer", "thanks"),
        ],
    }

    MAX_INPUT_LENGTH = 1000

    def __init__(self) -> None:
        roster = SupportRoster([
            SupportAgent(id="AG-1", name="Chioma", phone_number=AGENT_PHONE, role=SupportRole.GENERAL),
        ])
        notifier = ConsoleNotifier(labels={CUSTOMER: "Customer", AGENT_PHONE: "Agent Chioma"})
        self.dispatcher: ConversationDispatcher = build_dispatcher(
            notifier=notifier, roster=roster, resolver=IntentResolver(),
        )

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.business.name.upper()} WHATSAPP CORE - {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _expand(self, text: str) -> str:
        """Replace the OTP placeholder with the code 'emailed' to the customer."""
        if text != OTP_PLACEHOLDER:
            return text
        session = self.dispatcher.store.get(CUSTOMER)
        draft = session.data.registration_draft if session else None
        code = accounts.peek_otp(draft.email) if draft else None
        self.system_log(f"Code from inbox: {code}")
        return code or "0000"

    async def send(self, speaker: str, text: str) -> None:
        sender = AGENT_PHONE if speaker == "agent" else CUSTOMER
        colour = YELLOW if speaker == "agent" else BLUE
        label = "Agent" if speaker == "agent" else "Customer"
        payload = {"senderId": sender, "messageId": uuid.uuid4().hex, "text": self._expand(text)}
        if text == "[attachment]":
            payload = {"senderId": sender, "messageId": uuid.uuid4().hex, "attachmentRef": "media-rx-001"}
        print(f"\n{colour}[{label}] {RESET}{text}")

        result = await self.dispatcher.handle_payload(payload)
        if speaker == "customer":
            session = self.dispatcher.store.get(CUSTOMER)
            state = session.state.value if session else "-"
            intent = result.intent.value if result.intent else "-"
            self.system_log(f"Intent: {intent} | State: {state}")
        if result.error:
            self.system_log(f"{RED}Error: {result.error}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        if scenario == "shopping":
            accounts.register_user("Ada Obi", "ada@example.com", "secret1", CUSTOMER)
            self.system_log("Seeded account ada@example.com")

        self._banner(f"Scenario: {scenario}")
        asyncio.run(self._play(steps))
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Relayed messages: {len(self.dispatcher.relay.transcript)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def _play(self, steps: list[tuple[str, str]]) -> None:
        for speaker, text in steps:
            await self.send(speaker, text)

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit, prefix with 'agent:' to reply as support{RESET}")
        asyncio.run(self._interactive())

    async def _interactive(self) -> None:
        while True:
            line = (await asyncio.to_thread(input, f"\n{BLUE}> {RESET}")).strip()
            if not line:
                continue
            if line.lower() in ("quit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(line) > self.MAX_INPUT_LENGTH:
                self.system_log("Message too long, ignored")
                continue
            if line.lower().startswith("agent:"):
                await self.send("agent", line[len("agent:"):].strip())
            else:
                await self.send("customer", line)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
