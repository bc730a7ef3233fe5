"""Doctor search, appointment booking and diagnostic tests."""

import logging

from medrelay.config import settings
from medrelay.handlers.base import HandlerContext, parse_index
from medrelay.prompts import prompt_templates as copy
from medrelay.schemas.support_schema import SupportRole
from medrelay.tools import catalog, doctors

logger = logging.getLogger(__name__)


async def handle_doctor_search(ctx: HandlerContext) -> str:
    specialty = ctx.param("specialty")
    if not specialty:
        return "What type of doctor are you looking for? Please provide a specialty (e.g., Cardiologist, Pediatrician)."

    location = ctx.param("location") or settings.business.default_doctor_location
    found = doctors.search_doctors(specialty, location)
    if not found:
        return (
            f"Sorry, we couldn't find any {specialty} in {location}. "
            "Please try a different specialty or location."
        )

    cached = found[: settings.session.max_cached_results]
    ctx.session.data.doctor_results = cached
    return copy.build_doctor_list(specialty, location, cached)


async def handle_book_appointment(ctx: HandlerContext) -> str:
    results = ctx.session.data.doctor_results
    if not (ctx.param("doctorIndex") and ctx.param("date") and ctx.param("time")):
        return (
            "Please specify which doctor, date, and time for your appointment.\n"
            "Example: 'book 1 2030-06-15 14:00' to book the first doctor on June 15th at 2 PM."
        )
    if not results:
        return "Please search for doctors first before booking an appointment. Type '2' to find a doctor."

    index = parse_index(ctx.param("doctorIndex"), len(results))
    if index is None:
        return f"Please choose a doctor number between 1 and {len(results)}."

    doctor = results[index]
    appointment = doctors.book_appointment(
        ctx.require_user(), doctor.id, ctx.param("date"), ctx.param("time"),
    )
    when = f"{appointment.scheduled_for:%Y-%m-%d %H:%M}"
    await ctx.relay.notify_team(
        SupportRole.MEDICAL,
        "New Appointment Booked",
        ctx.sender_id,
        {"Doctor": f"Dr. {doctor.name}", "Date/Time": when},
    )
    return (
        f"Your appointment with Dr. {doctor.name} has been scheduled for {when}. "
        f"Appointment ID: {appointment.id}. You will receive a confirmation shortly."
    )


async def handle_diagnostic_tests(ctx: HandlerContext) -> str:
    test_type = ctx.param("testType") or None
    tests = catalog.search_diagnostic_tests(test_type)
    if not tests:
        return f"Sorry, we don't offer a {test_type} yet. Type '7' to see all available tests."
    return copy.build_diagnostic_list(tests, test_type)
