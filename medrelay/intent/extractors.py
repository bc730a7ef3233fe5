"""
Parameter extraction for the deterministic matcher.

Each extractor takes the original (case-preserved) message and returns the
string parameters it could find. Missing values are simply absent; the
handlers decide what to ask for.
"""

import re
from typing import Callable

from medrelay.utils import EMAIL_PATTERN

Extractor = Callable[[str], dict[str, str]]

REGISTER_VERBS = r"register|signup|sign up|create account|new account"
LOGIN_VERBS = r"login|signin|sign in|log in|authenticate"

SEARCH_VERBS = ("search", "find", "show", "look for", "do you have", "give me", "send me")
PRODUCT_WORDS = ("medicine", "drug", "product", "medication", "pill", "tablet")

SPECIALTIES = (
    "cardiologist", "pediatrician", "dermatologist", "gynecologist",
    "general practitioner", "neurologist", "orthopedic", "ophthalmologist",
    "pulmonologist", "gastroenterologist", "urologist", "psychiatrist",
)

TEST_TYPES = (
    "full blood count", "blood test", "covid test", "malaria test", "typhoid test",
    "thyroid test", "glucose test", "lipid profile", "urinalysis",
)

HEALTHCARE_CATEGORIES = (
    "first aid", "medical devices", "thermometer", "oximeter", "glucose meter",
    "bandage", "gauze", "cream", "gel", "kit",
)

_NUMBER = re.compile(r"\d+")
_DATE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
_TIME = re.compile(r"\b(\d{1,2}:\d{2})\s*(am|pm)?\b", re.IGNORECASE)
_LOCATION = re.compile(r"\bin\s+([a-z][a-z\s]*?)(?:\s+on\b|\s+at\b|$)", re.IGNORECASE)
_ORDER_VERB = re.compile(
    r"^(place order|confirm order|proceed to checkout|proceed to|checkout|order|buy|purchase|complete)\b",
    re.IGNORECASE,
)
_PAYMENT_WORDS = re.compile(
    r"\b(?:(?:pay|paying)\s+(?:with|via|by|on)\s+)?(?:flutterwave|paystack|cash on delivery|cash)\b",
    re.IGNORECASE,
)
_ADDRESS_LEAD = re.compile(r"^(?:(?:and\s+)?(?:deliver|send|ship)\s+)?(?:to|at|address:?|location:?)\s+", re.IGNORECASE)


def _numbers(message: str) -> list[str]:
    return _NUMBER.findall(message)


def _first_in(message: str, vocabulary: tuple[str, ...]) -> str:
    lower = message.lower()
    for term in vocabulary:
        if term in lower:
            return term
    return ""


def _credentials(message: str, verbs: str, with_name: bool) -> dict[str, str]:
    """Split ``<verb> [name...] email password...`` around the email token."""
    params: dict[str, str] = {}
    rest = re.sub(rf"^({verbs})\s*", "", message.strip(), flags=re.IGNORECASE)
    parts = rest.split()
    for index, part in enumerate(parts):
        if EMAIL_PATTERN.fullmatch(part):
            params["email"] = part
            if with_name and index > 0:
                params["name"] = " ".join(parts[:index])
            if index + 1 < len(parts):
                params["password"] = " ".join(parts[index + 1:])
            break
    else:
        if with_name and parts:
            params["name"] = " ".join(parts)
    return params


def extract_registration(message: str) -> dict[str, str]:
    return _credentials(message, REGISTER_VERBS, with_name=True)


def extract_login(message: str) -> dict[str, str]:
    return _credentials(message, LOGIN_VERBS, with_name=False)


def extract_product(message: str) -> dict[str, str]:
    """Product name is whatever follows the search verb, minus filler."""
    lower = message.lower()
    name = message
    for verb in SEARCH_VERBS:
        index = lower.find(verb)
        if index != -1:
            name = message[index + len(verb):]
            break
    name = re.sub(r"^\s*(for|a|an|the|some)\s+", "", name, flags=re.IGNORECASE)
    for word in PRODUCT_WORDS:
        name = re.sub(rf"\b{word}s?\b", "", name, flags=re.IGNORECASE)
    name = " ".join(name.split()).strip(" ?.!")
    return {"product": name} if name else {}


def extract_cart_item(message: str) -> dict[str, str]:
    numbers = _numbers(message)
    if not numbers:
        return {}
    return {"productIndex": numbers[0], "quantity": numbers[1] if len(numbers) > 1 else "1"}


def extract_payment_method(message: str) -> str:
    lower = message.lower()
    if "flutterwave" in lower:
        return "Flutterwave"
    if "paystack" in lower:
        return "Paystack"
    if "cash" in lower:
        return "Cash on Delivery"
    return ""


def extract_order(message: str) -> dict[str, str]:
    """Address is the order text with the verb and payment words removed."""
    params: dict[str, str] = {}
    method = extract_payment_method(message)
    if method:
        params["paymentMethod"] = method

    address = _ORDER_VERB.sub("", message.strip())
    address = _PAYMENT_WORDS.sub("", address)
    address = re.sub(r"\b(?:medicines?|now|please)\b", "", address, flags=re.IGNORECASE)
    address = _ADDRESS_LEAD.sub("", address.strip(" ,.-"))
    address = " ".join(address.split()).strip(" ,.-")
    if address:
        params["address"] = address
    return params


def extract_order_id(message: str) -> dict[str, str]:
    numbers = _numbers(message)
    return {"orderId": numbers[0]} if numbers else {}


def extract_doctor_search(message: str) -> dict[str, str]:
    params: dict[str, str] = {}
    specialty = _first_in(message, SPECIALTIES)
    if specialty:
        params["specialty"] = specialty
    m = _LOCATION.search(message.strip())
    if m:
        params["location"] = m.group(1).strip().title()
    return params


def extract_appointment(message: str) -> dict[str, str]:
    params: dict[str, str] = {}
    date = _DATE.search(message)
    time = _TIME.search(message)
    # The doctor index is the first bare number that is not part of the date or time.
    remainder = message
    if date:
        params["date"] = date.group(1)
        remainder = remainder.replace(date.group(0), " ")
    if time:
        params["time"] = time.group(0).strip()
        remainder = remainder.replace(time.group(0), " ")
    numbers = _numbers(remainder)
    if numbers:
        params["doctorIndex"] = numbers[0]
    return params


def extract_payment(message: str) -> dict[str, str]:
    params = extract_order_id(message)
    method = extract_payment_method(message)
    if method in ("Flutterwave", "Paystack"):
        params["provider"] = method
    return params


def extract_test_type(message: str) -> dict[str, str]:
    test_type = _first_in(message, TEST_TYPES)
    return {"testType": test_type} if test_type else {}


def extract_category(message: str) -> dict[str, str]:
    category = _first_in(message, HEALTHCARE_CATEGORIES)
    return {"category": category} if category else {}


def extract_email(message: str) -> dict[str, str]:
    m = EMAIL_PATTERN.search(message)
    return {"email": m.group(0)} if m else {}


def extract_support_role(message: str) -> dict[str, str]:
    """Route support requests to a team when the message names its area."""
    lower = message.lower()
    if re.search(r"\b(order|delivery|package|refund)\b", lower):
        return {"role": "orders"}
    if re.search(r"\b(doctor|prescription|medical|medication)\b", lower):
        return {"role": "medical"}
    if re.search(r"\b(app|login|password|bug|error)\b", lower):
        return {"role": "technical"}
    return {}


def no_parameters(message: str) -> dict[str, str]:
    return {}
