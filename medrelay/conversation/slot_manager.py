"""
Slot manager for one-message forms: Collect -> Validate -> Report.

Registration and login are typed in a single message
(``register Ada Obi ada@example.com secret1``). The resolver extracts the
raw parameters; the slot manager validates and normalizes each one and
names exactly which fields are missing or malformed.

Usage:
    form = SlotManager(REGISTRATION_SLOTS)
    form.fill(parameters)
    if form.get_missing_slots():
        reply = form.get_missing_summary()
    else:
        draft = form.require_complete()  # ValidationError names the bad field
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from medrelay.errors import ValidationError
from medrelay.utils import is_valid_email, sanitize_input

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


class SlotStatus(str, Enum):
    """Lifecycle status of a slot value."""

    EMPTY = "empty"
    COLLECTED = "collected"
    VALIDATED = "validated"


def _validate_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_password(value: str) -> bool:
    return len(value) >= MIN_PASSWORD_LENGTH


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single slot to collect."""

    name: str
    display_name: str
    requirement: str
    required: bool = True
    validator: Optional[Callable[[str], bool]] = None


@dataclass
class SlotValue:
    """Current state of a collected slot."""

    raw_value: Optional[str] = None
    normalized_value: Optional[str] = None
    status: SlotStatus = SlotStatus.EMPTY
    errors: list[str] = field(default_factory=list)


REGISTRATION_SLOTS: tuple[SlotDefinition, ...] = (
    SlotDefinition(
        name="name",
        display_name="full name",
        requirement="Full name (at least 2 characters)",
        validator=_validate_name,
    ),
    SlotDefinition(
        name="email",
        display_name="email address",
        requirement="Email address (valid email format)",
        validator=is_valid_email,
    ),
    SlotDefinition(
        name="password",
        display_name="password",
        requirement="Password (at least 6 characters)",
        validator=_validate_password,
    ),
)

LOGIN_SLOTS: tuple[SlotDefinition, ...] = (
    SlotDefinition(
        name="email",
        display_name="email address",
        requirement="Email address",
        validator=is_valid_email,
    ),
    SlotDefinition(
        name="password",
        display_name="password",
        requirement="Password",
    ),
)


class SlotManager:
    """Validates the parameters of a single-message form."""

    def __init__(self, definitions: tuple[SlotDefinition, ...]) -> None:
        self.definitions = definitions
        self.slots: dict[str, SlotValue] = {defn.name: SlotValue() for defn in definitions}

    def _get_definition(self, name: str) -> SlotDefinition:
        for defn in self.definitions:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown slot: {name}")

    def _normalize(self, name: str, value: str) -> str:
        """Apply slot-specific normalization rules."""
        if name == "email":
            return value.strip().lower()
        if name == "name":
            return " ".join(value.split()).title()
        return value

    def set_slot(self, name: str, raw_value: str) -> tuple[bool, str]:
        """
        Set a slot value with validation.

        Returns:
            (success, message) - success=True if validation passed.
        """
        defn = self._get_definition(name)
        slot = self.slots[name]
        value = sanitize_input(raw_value)
        slot.raw_value = value

        if not value:
            slot.status = SlotStatus.EMPTY
            return False, f"The {defn.display_name} is missing."

        if defn.validator and not defn.validator(value):
            slot.status = SlotStatus.COLLECTED
            message = f"The {defn.display_name} doesn't look right. {defn.requirement}."
            slot.errors.append(message)
            logger.debug("Slot '%s' validation failed", name)
            return False, message

        slot.normalized_value = self._normalize(name, value)
        slot.status = SlotStatus.VALIDATED
        return True, f"Got {defn.display_name}"

    def fill(self, parameters: dict[str, str]) -> None:
        """Set every slot present in ``parameters``."""
        for defn in self.definitions:
            raw = parameters.get(defn.name)
            if raw is not None:
                self.set_slot(defn.name, raw)

    def get_missing_slots(self) -> list[SlotDefinition]:
        """Get all required slots never provided."""
        return [
            defn
            for defn in self.definitions
            if defn.required and self.slots[defn.name].status == SlotStatus.EMPTY
        ]

    def get_missing_summary(self) -> str:
        """Bullet list of the requirement for every missing or invalid field."""
        lines = [
            f"• {defn.requirement}"
            for defn in self.definitions
            if self.slots[defn.name].status != SlotStatus.VALIDATED
        ]
        return "\n".join(lines)

    def require_complete(self) -> dict[str, str]:
        """Return the normalized values or raise ValidationError naming the first bad field."""
        for defn in self.definitions:
            slot = self.slots[defn.name]
            if defn.required and slot.status != SlotStatus.VALIDATED:
                if slot.status == SlotStatus.EMPTY:
                    raise ValidationError(f"Missing {defn.display_name}", field_name=defn.name)
                raise ValidationError(slot.errors[-1], field_name=defn.name)
        return self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        """Export validated slot values as a flat dict."""
        return {
            d.name: self.slots[d.name].normalized_value
            for d in self.definitions
            if self.slots[d.name].normalized_value is not None
        }
