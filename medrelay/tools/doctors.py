"""
Mock doctor directory and appointment booking.

In production, this would call the clinic scheduling API.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from medrelay.errors import NotFound, ValidationError
from medrelay.schemas.catalog_schema import Appointment, Doctor

logger = logging.getLogger(__name__)

DOCTORS: list[Doctor] = [
    Doctor(id="DR-1", name="Adaeze Okafor", specialty="cardiologist", location="Lagos", rating=4.8),
    Doctor(id="DR-2", name="Tunde Bakare", specialty="cardiologist", location="Abuja", rating=4.6),
    Doctor(id="DR-3", name="Ngozi Eze", specialty="pediatrician", location="Lagos", rating=4.9),
    Doctor(id="DR-4", name="Ibrahim Musa", specialty="general practitioner", location="Lagos", rating=4.4),
    Doctor(id="DR-5", name="Funmi Adeyemi", specialty="dermatologist", location="Lagos", rating=4.7),
    Doctor(id="DR-6", name="Chinedu Obi", specialty="gynecologist", location="Port Harcourt", rating=4.5),
    Doctor(id="DR-7", name="Aisha Bello", specialty="neurologist", location="Abuja", rating=4.8),
]

_appointments: dict[str, Appointment] = {}


def search_doctors(specialty: Optional[str], location: str) -> list[Doctor]:
    """Doctors in ``location``, optionally filtered by specialty, best rated first."""
    results = [
        d for d in DOCTORS
        if d.location.lower() == location.strip().lower()
        and (not specialty or d.specialty == specialty.lower())
    ]
    return sorted(results, key=lambda d: d.rating, reverse=True)


def book_appointment(user_id: str, doctor_id: str, date: str, time: str) -> Appointment:
    """Book a slot. Date is YYYY-MM-DD, time is HH:MM with optional am/pm."""
    if not any(d.id == doctor_id for d in DOCTORS):
        raise NotFound(f"Doctor {doctor_id} not found")
    scheduled_for = _parse_slot(date, time)
    if scheduled_for <= datetime.now(timezone.utc):
        raise ValidationError("Appointment must be in the future", field_name="date")

    appointment = Appointment(
        id=f"A-{uuid.uuid4().hex[:8].upper()}",
        user_id=user_id,
        doctor_id=doctor_id,
        scheduled_for=scheduled_for,
    )
    _appointments[appointment.id] = appointment
    logger.info("Appointment %s booked with %s for %s", appointment.id, doctor_id, user_id)
    return appointment


def _parse_slot(date: str, time: str) -> datetime:
    compact = time.replace(" ", "").lower()
    fmt = "%I:%M%p" if compact.endswith(("am", "pm")) else "%H:%M"
    try:
        day = datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid date: {date}. Use YYYY-MM-DD.", field_name="date") from None
    try:
        clock = datetime.strptime(compact, fmt)
    except ValueError:
        raise ValidationError(f"Invalid time: {time}. Use HH:MM.", field_name="time") from None
    return day.replace(hour=clock.hour, minute=clock.minute, tzinfo=timezone.utc)


def get_appointments(user_id: str) -> list[Appointment]:
    return [a for a in _appointments.values() if a.user_id == user_id]


def reset() -> None:
    """Clear booked appointments. Used by test fixtures for isolation."""
    _appointments.clear()
