"""Shared utilities used across the conversation core."""

import re

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.\w+")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0803 123 4567")
        '08031234567'
        >>> normalize_phone("+234 (803) 123-4567")
        '+2348031234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def sanitize_input(value: str) -> str:
    """Strip control characters and surrounding whitespace from user text."""
    return _CONTROL_CHARS.sub("", value).strip()


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value.strip()) is not None
