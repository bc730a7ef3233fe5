"""
Mock payment-link generation for Flutterwave and Paystack.

Webhook verification and settlement are handled by the payments service.
"""

import logging
import uuid

from medrelay.config import settings
from medrelay.errors import ValidationError
from medrelay.schemas.catalog_schema import PaymentLink
from medrelay.tools import catalog

logger = logging.getLogger(__name__)

PROVIDERS = {
    "flutterwave": ("Flutterwave", "https://checkout.flutterwave.com/pay/"),
    "paystack": ("Paystack", "https://checkout.paystack.com/"),
}


def create_payment_link(order_id: str, provider: str) -> PaymentLink:
    """Create a hosted checkout link for the order's total."""
    key = provider.strip().lower()
    if key not in PROVIDERS:
        raise ValidationError(
            f"Unsupported payment provider: {provider}. Choose Flutterwave or Paystack.",
            field_name="provider",
        )
    order = catalog.track_order(order_id)
    name, base_url = PROVIDERS[key]
    reference = f"{settings.app_name}-{order.id}-{uuid.uuid4().hex[:6]}"
    logger.info("Payment link created for order %s via %s", order.id, name)
    return PaymentLink(
        provider=name,
        url=f"{base_url}{reference}",
        reference=reference,
        amount=order.total_amount,
        currency="NGN",
    )
