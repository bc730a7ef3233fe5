from medrelay.handlers.base import Handler, HandlerContext
from medrelay.handlers.registry import get_handler, get_registered_intents, register_handler

__all__ = [
    "Handler",
    "HandlerContext",
    "get_handler",
    "get_registered_intents",
    "register_handler",
]
