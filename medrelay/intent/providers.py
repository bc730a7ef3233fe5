"""Primary intent providers consulted before the deterministic matcher."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from medrelay.config import settings
from medrelay.errors import UpstreamFailure
from medrelay.prompts.system_prompts import INTENT_CLASSIFIER_PROMPT
from medrelay.schemas.intent_schema import IntentResult, IntentSource
from medrelay.schemas.session_schema import Session

logger = logging.getLogger(__name__)


class IntentProvider(ABC):
    """External classification backend."""

    name: str = "provider"

    @abstractmethod
    async def classify(self, text: str, context: Optional[Session] = None) -> IntentResult:
        """Classify ``text``. Raise on any failure; the resolver falls back."""


class OpenAIIntentProvider(IntentProvider):
    """Chat-completion classifier returning a JSON object per message."""

    name = "openai"

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None) -> None:
        self.client = client or AsyncOpenAI()
        self.model = model or settings.resolver.llm_model
        logger.info("OpenAI intent provider initialized: %s", self.model)

    async def classify(self, text: str, context: Optional[Session] = None) -> IntentResult:
        messages = [{"role": "system", "content": INTENT_CLASSIFIER_PROMPT}]
        if context is not None:
            messages.append({
                "role": "system",
                "content": f"Current session state: {context.state.value}",
            })
        messages.append({"role": "user", "content": text})

        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=settings.resolver.llm_temperature,
            response_format={"type": "json_object"},
        )
        content = resp.choices[0].message.content or ""
        return self.parse(content)

    @staticmethod
    def parse(content: str) -> IntentResult:
        """Turn the model's JSON reply into an IntentResult, or raise UpstreamFailure."""
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise UpstreamFailure(f"Provider returned non-JSON content: {content[:80]!r}") from exc
        if not isinstance(payload, dict):
            raise UpstreamFailure("Provider returned a non-object JSON value")

        params = payload.get("parameters") or {}
        if not isinstance(params, dict):
            raise UpstreamFailure("Provider parameters must be an object")
        try:
            return IntentResult(
                intent=payload.get("intent"),
                parameters={str(k): str(v) for k, v in params.items() if v is not None},
                confidence=payload.get("confidence", 0.0),
                source=IntentSource.PRIMARY,
            )
        except PydanticValidationError as exc:
            raise UpstreamFailure(f"Provider reply failed validation: {exc.error_count()} error(s)") from exc
