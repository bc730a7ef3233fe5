from medrelay.intent.matcher import DeterministicMatcher
from medrelay.intent.providers import IntentProvider, OpenAIIntentProvider
from medrelay.intent.resolver import IntentResolver, build_resolver

__all__ = [
    "DeterministicMatcher",
    "IntentProvider",
    "OpenAIIntentProvider",
    "IntentResolver",
    "build_resolver",
]
