"""Intent classification result models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Intent(str, Enum):
    """Classified purpose of an inbound customer message."""
    GREETING = "greeting"
    HELP = "help"
    LOGOUT = "logout"
    REGISTER = "register"
    LOGIN = "login"
    PRODUCT_SEARCH = "product_search"
    ADD_TO_CART = "add_to_cart"
    PLACE_ORDER = "place_order"
    TRACK_ORDER = "track_order"
    SEARCH_DOCTORS = "search_doctors"
    BOOK_APPOINTMENT = "book_appointment"
    PAYMENT = "payment"
    SUPPORT = "support"
    DIAGNOSTIC_TESTS = "diagnostic_tests"
    HEALTHCARE_PRODUCTS = "healthcare_products"
    PASSWORD_RESET = "password_reset"
    PRESCRIPTION_UPLOAD = "prescription_upload"
    UNKNOWN = "unknown"


class IntentSource(str, Enum):
    """Resolver stage that produced a result."""
    NUMERIC = "numeric"
    PHRASE = "phrase"
    PATTERN = "pattern"
    KEYWORD = "keyword"
    FALLBACK = "fallback"
    PRIMARY = "primary"
    ERROR = "error"


class IntentResult(BaseModel):
    """Resolver output. The dispatcher supplies default copy when text is None."""
    intent: Intent
    parameters: dict[str, str] = Field(default_factory=dict)
    fulfillment_text: Optional[str] = None
    confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    source: IntentSource = IntentSource.PATTERN
