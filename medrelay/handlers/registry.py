"""
Handler registry: intent tag -> capability handler.

Handler modules never import the dispatcher; they are registered here and
looked up per turn, so adding a capability means adding one entry.
"""

import logging
from typing import Optional

from medrelay.handlers.base import Handler
from medrelay.schemas.intent_schema import Intent

logger = logging.getLogger(__name__)

_HANDLER_REGISTRY: dict[Intent, Handler] = {}


def register_handler(intent: Intent, handler: Handler) -> None:
    """Register a handler for an intent, replacing any earlier one."""
    _HANDLER_REGISTRY[intent] = handler
    logger.debug("Handler registered: %s", intent.value)


def get_handler(intent: Intent) -> Optional[Handler]:
    return _HANDLER_REGISTRY.get(intent)


def get_registered_intents() -> list[Intent]:
    """Return all intents that have a handler."""
    return list(_HANDLER_REGISTRY.keys())


def _auto_register() -> None:
    """Register the built-in handlers. Called once at import time."""
    from medrelay.handlers import (
        account_handlers,
        commerce_handlers,
        medical_handlers,
        support_handler,
    )

    register_handler(Intent.GREETING, account_handlers.handle_greeting)
    register_handler(Intent.HELP, account_handlers.handle_help)
    register_handler(Intent.REGISTER, account_handlers.handle_register)
    register_handler(Intent.LOGIN, account_handlers.handle_login)
    register_handler(Intent.LOGOUT, account_handlers.handle_logout)
    register_handler(Intent.PASSWORD_RESET, account_handlers.handle_password_reset)

    register_handler(Intent.PRODUCT_SEARCH, commerce_handlers.handle_product_search)
    register_handler(Intent.ADD_TO_CART, commerce_handlers.handle_add_to_cart)
    register_handler(Intent.PLACE_ORDER, commerce_handlers.handle_place_order)
    register_handler(Intent.TRACK_ORDER, commerce_handlers.handle_track_order)
    register_handler(Intent.PAYMENT, commerce_handlers.handle_payment)
    register_handler(Intent.HEALTHCARE_PRODUCTS, commerce_handlers.handle_healthcare_products)
    register_handler(Intent.PRESCRIPTION_UPLOAD, commerce_handlers.handle_prescription_upload)

    register_handler(Intent.SEARCH_DOCTORS, medical_handlers.handle_doctor_search)
    register_handler(Intent.BOOK_APPOINTMENT, medical_handlers.handle_book_appointment)
    register_handler(Intent.DIAGNOSTIC_TESTS, medical_handlers.handle_diagnostic_tests)

    register_handler(Intent.SUPPORT, support_handler.handle_support_request)


_auto_register()
