"""
Conversation core entry point.

Runs the dispatcher against the console so the whole customer and agent
conversation can be driven by hand. Webhook hosting lives in the transport
service, which calls ``ConversationDispatcher.handle_payload`` per event.

Usage:
    Console mode:  python main.py console
    Scenario mode: python main.py scenario registration|shopping|support
"""

import logging
import sys

from medrelay.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    """Start the interactive console chat (no API keys required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


def _run_scenario(name: str) -> None:
    from console_demo import ConsoleSession

    ConsoleSession().run_scenario(name)


if __name__ == "__main__":
    logger.debug("Starting %s", settings.app_name)
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    elif len(sys.argv) > 2 and sys.argv[1] == "scenario":
        _run_scenario(sys.argv[2])
    else:
        print(__doc__)
        sys.exit(1)
