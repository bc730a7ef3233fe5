"""
Deterministic intent matcher.

Stages, first match wins:
    1. numeric menu shortcuts ("1".."8")
    2. exact phrases (help, logout, greetings)
    3. ordered (predicate, extractor) rules
    4. single-keyword fallback
Anything else is ``unknown``. The rule order is load-bearing: registration
and login are checked before the search rules so that credentials never
reach the product search.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from medrelay.intent import extractors as ex
from medrelay.prompts.prompt_templates import HELP_HINT, HELP_MESSAGE
from medrelay.schemas.intent_schema import Intent, IntentResult, IntentSource

logger = logging.getLogger(__name__)

FEATURE_COMMANDS: dict[str, Intent] = {
    "1": Intent.PRODUCT_SEARCH,
    "2": Intent.SEARCH_DOCTORS,
    "3": Intent.TRACK_ORDER,
    "4": Intent.BOOK_APPOINTMENT,
    "5": Intent.PLACE_ORDER,
    "6": Intent.SUPPORT,
    "7": Intent.DIAGNOSTIC_TESTS,
    "8": Intent.HEALTHCARE_PRODUCTS,
}

CONFIDENCE = {
    IntentSource.NUMERIC: 1.0,
    IntentSource.PHRASE: 0.95,
    IntentSource.PATTERN: 0.9,
    IntentSource.KEYWORD: 0.6,
    IntentSource.FALLBACK: 0.0,
}

UNKNOWN_MESSAGE = f"I didn't understand that. {HELP_HINT}"

_NUMERIC = re.compile(r"^\d+$")

_PHRASES: list[tuple[re.Pattern, Intent]] = [
    (re.compile(r"^(help|menu|what can you do|capabilities|features|\?)$"), Intent.HELP),
    (re.compile(r"^(logout|exit|bye|goodbye|sign out|log out)$"), Intent.LOGOUT),
    (
        re.compile(r"^(hello|hi|hey|greetings|good morning|good afternoon|good evening|start|begin)[!.]?$"),
        Intent.GREETING,
    ),
]

_DOCTOR_WORDS = (
    r"doctor|physician|specialist|cardiologist|pediatrician|dermatologist|gynecologist"
    r"|neurologist|orthopedic|ophthalmologist|pulmonologist|gastroenterologist|urologist"
    r"|psychiatrist|general practitioner"
)
_TEST_WORDS = r"test|screening|check ?up|lab|diagnostic|lipid profile|urinalysis|full blood count"
_SEARCH_VERBS = r"search|find|show|look for|do you have|give me|send me"
_PRODUCT_WORDS = r"medicine|drug|product|medication|pill|tablet"


def _rx(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda lower: compiled.search(lower) is not None


def _any(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda lower: any(p(lower) for p in predicates)


_mentions_doctor = _rx(rf"\b({_DOCTOR_WORDS})")
_mentions_test = _rx(rf"\b({_TEST_WORDS})\b")
_mentions_order = _rx(r"\b(order|delivery|package)\b")


def _generic_product_search(lower: str) -> bool:
    """A bare search verb means products unless doctors or tests are named."""
    return (
        re.match(rf"^({_SEARCH_VERBS})\b", lower) is not None
        and not _mentions_doctor(lower)
        and not _mentions_test(lower)
        and not _mentions_order(lower)
    )


@dataclass(frozen=True)
class IntentRule:
    """One ordered matching rule: a predicate over lowercased text plus an extractor."""
    intent: Intent
    predicate: Callable[[str], bool]
    extractor: ex.Extractor = ex.no_parameters


RULES: tuple[IntentRule, ...] = (
    IntentRule(Intent.REGISTER, _rx(rf"^({ex.REGISTER_VERBS})\b"), ex.extract_registration),
    IntentRule(Intent.LOGIN, _rx(rf"^({ex.LOGIN_VERBS})\b"), ex.extract_login),
    IntentRule(
        Intent.PRODUCT_SEARCH,
        _any(
            _rx(rf"^({_SEARCH_VERBS}).*?\b({_PRODUCT_WORDS})"),
            _rx(rf"^({_PRODUCT_WORDS})"),
            _generic_product_search,
        ),
        ex.extract_product,
    ),
    IntentRule(
        Intent.ADD_TO_CART,
        _any(_rx(r"^(add|put|move)\b.*?\b(cart|basket)"), _rx(r"^add\s+\d+")),
        ex.extract_cart_item,
    ),
    IntentRule(
        Intent.PLACE_ORDER,
        _rx(r"^(order|checkout|place order|buy|purchase|proceed to|complete|confirm order)\b"),
        ex.extract_order,
    ),
    IntentRule(
        Intent.TRACK_ORDER,
        _any(
            _rx(r"^(track|trace)\b"),
            _rx(r"^(where is|status of|check|update on)\b.*?\b(order|delivery|package)"),
        ),
        ex.extract_order_id,
    ),
    IntentRule(
        Intent.SEARCH_DOCTORS,
        _any(
            _rx(rf"^(find|search|need|looking for|want to see|book|appointment with)\b.*?\b({_DOCTOR_WORDS})"),
            _rx(r"^(doctor|physician|specialist)"),
        ),
        ex.extract_doctor_search,
    ),
    IntentRule(
        Intent.BOOK_APPOINTMENT,
        _any(
            _rx(r"^(book|schedule|make|arrange|reserve)\b.*?\b(appointment|consultation|visit)"),
            _rx(r"^book\s+\d+"),
        ),
        ex.extract_appointment,
    ),
    IntentRule(Intent.PAYMENT, _rx(r"^(pay|payment|process payment|settle)\b"), ex.extract_payment),
    IntentRule(
        Intent.SUPPORT,
        _rx(r"^(support|agent|help me|speak to|chat with|contact|complaint|issue|problem|talk to|connect)\b"),
        ex.extract_support_role,
    ),
    IntentRule(
        Intent.DIAGNOSTIC_TESTS,
        _any(
            _rx(r"^(diagnostic|test|blood test|lab test|screening|check up|medical test)"),
            _rx(r"^(book|schedule)\b.*?\b(test|screening|check ?up)\b"),
        ),
        ex.extract_test_type,
    ),
    IntentRule(
        Intent.HEALTHCARE_PRODUCTS,
        _rx(r"^(healthcare|health care|products|browse|equipment|devices|supplies)"),
        ex.extract_category,
    ),
    IntentRule(Intent.PASSWORD_RESET, _rx(r"^(forgot|reset|change|password)\b"), ex.extract_email),
    IntentRule(
        Intent.PRESCRIPTION_UPLOAD,
        _rx(r"^(upload|prescription|script|rx|medicine prescription)\b"),
    ),
)

KEYWORD_FALLBACK: tuple[tuple[re.Pattern, Intent], ...] = (
    (re.compile(r"medicine|drug|pharmacy|medicinal"), Intent.PRODUCT_SEARCH),
    (re.compile(r"doctor|physician|clinic"), Intent.SEARCH_DOCTORS),
    (re.compile(r"appointment|consultation"), Intent.BOOK_APPOINTMENT),
    (re.compile(r"order|purchase|cart|checkout"), Intent.PLACE_ORDER),
    (re.compile(r"deliver|shipping|arrive"), Intent.TRACK_ORDER),
)


def _result(intent: Intent, source: IntentSource, parameters=None, text=None) -> IntentResult:
    return IntentResult(
        intent=intent,
        parameters=parameters or {},
        fulfillment_text=text,
        confidence=CONFIDENCE[source],
        source=source,
    )


class DeterministicMatcher:
    """Keyword and regex classifier that is always available."""

    def __init__(self, rules: tuple[IntentRule, ...] = RULES) -> None:
        self.rules = rules

    def match_numeric(self, text: str) -> Optional[IntentResult]:
        """Menu shortcut for a bare number, or None."""
        command = text.strip()
        if _NUMERIC.match(command) and command in FEATURE_COMMANDS:
            return _result(FEATURE_COMMANDS[command], IntentSource.NUMERIC)
        return None

    def match(self, text: str) -> IntentResult:
        numeric = self.match_numeric(text)
        if numeric is not None:
            return numeric

        message = " ".join(text.split())
        lower = message.lower()

        for pattern, intent in _PHRASES:
            if pattern.match(lower):
                return _result(
                    intent, IntentSource.PHRASE,
                    text=HELP_MESSAGE if intent == Intent.HELP else None,
                )

        for rule in self.rules:
            if rule.predicate(lower):
                params = rule.extractor(message)
                logger.debug("Rule '%s' matched with %d parameter(s)", rule.intent.value, len(params))
                return _result(rule.intent, IntentSource.PATTERN, parameters=params)

        for pattern, intent in KEYWORD_FALLBACK:
            if pattern.search(lower):
                return _result(intent, IntentSource.KEYWORD)

        return _result(Intent.UNKNOWN, IntentSource.FALLBACK, text=UNKNOWN_MESSAGE)
