"""
Intent resolution pipeline.

    numeric shortcut -> primary provider (optional) -> deterministic matcher

The numeric menu is exact and state-independent, so it always runs first.
The provider only wins when it answers in time with a known intent at or
above the confidence floor; otherwise the deterministic stages decide, and
they produce the same result whether or not a provider is configured.
``resolve`` never raises.
"""

import asyncio
import logging
from typing import Optional

from medrelay.config import settings
from medrelay.intent.matcher import DeterministicMatcher
from medrelay.intent.providers import IntentProvider, OpenAIIntentProvider
from medrelay.prompts.prompt_templates import HELP_HINT
from medrelay.schemas.intent_schema import Intent, IntentResult, IntentSource
from medrelay.schemas.session_schema import Session

logger = logging.getLogger(__name__)

ERROR_MESSAGE = f"I encountered an error processing your message. {HELP_HINT}"


class IntentResolver:
    """Maps free text to an IntentResult."""

    def __init__(
        self,
        provider: Optional[IntentProvider] = None,
        matcher: Optional[DeterministicMatcher] = None,
        timeout_sec: Optional[float] = None,
        min_confidence: Optional[float] = None,
    ) -> None:
        self.provider = provider
        self.matcher = matcher or DeterministicMatcher()
        self.timeout_sec = timeout_sec if timeout_sec is not None else settings.resolver.timeout_sec
        self.min_confidence = (
            min_confidence if min_confidence is not None else settings.resolver.min_confidence
        )

    async def resolve(self, text: str, context: Optional[Session] = None) -> IntentResult:
        try:
            numeric = self.matcher.match_numeric(text)
            if numeric is not None:
                return numeric

            if self.provider is not None:
                primary = await self._consult_provider(text, context)
                if primary is not None:
                    return primary

            return self.matcher.match(text)
        except Exception:
            logger.exception("Intent resolution failed")
            return IntentResult(
                intent=Intent.UNKNOWN,
                fulfillment_text=ERROR_MESSAGE,
                confidence=0.0,
                source=IntentSource.ERROR,
            )

    async def _consult_provider(self, text: str, context: Optional[Session]) -> Optional[IntentResult]:
        """Return the provider's answer if usable, else None."""
        try:
            result = await asyncio.wait_for(
                self.provider.classify(text, context), timeout=self.timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning("Intent provider '%s' timed out after %.1fs", self.provider.name, self.timeout_sec)
            return None
        except Exception as e:
            logger.warning("Intent provider '%s' failed: %s", self.provider.name, e)
            return None

        if result.intent == Intent.UNKNOWN or result.confidence < self.min_confidence:
            logger.debug(
                "Provider answer '%s' (%.2f) below threshold; falling back",
                result.intent.value, result.confidence,
            )
            return None
        return result


def build_resolver(provider_name: Optional[str] = None) -> IntentResolver:
    """Create a resolver for the configured provider."""
    provider_name = provider_name or settings.resolver.provider
    provider: Optional[IntentProvider] = None
    if provider_name == "openai":
        provider = OpenAIIntentProvider()
    return IntentResolver(provider=provider)
