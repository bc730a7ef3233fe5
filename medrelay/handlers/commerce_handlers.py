"""Shopping capabilities: product search, cart, orders, payment links and prescriptions."""

import logging

from medrelay.config import settings
from medrelay.errors import NotFound, UpstreamFailure
from medrelay.handlers.base import HandlerContext, parse_index
from medrelay.prompts import prompt_templates as copy
from medrelay.schemas.support_schema import SupportRole
from medrelay.tools import catalog, payments, prescriptions

logger = logging.getLogger(__name__)

ONLINE_METHODS = ("Flutterwave", "Paystack")


async def handle_product_search(ctx: HandlerContext) -> str:
    query = ctx.param("product")
    if not query:
        return "What medicine or product are you looking for? Please provide a name or category."

    products = catalog.search_products(query)
    if not products:
        return f'Sorry, we couldn\'t find any products matching "{query}". Please try a different search term.'

    cached = products[: settings.session.max_cached_results]
    ctx.session.data.search_results = cached
    return copy.build_product_list(query, cached)


async def handle_add_to_cart(ctx: HandlerContext) -> str:
    results = ctx.session.data.search_results
    if not ctx.param("productIndex"):
        return copy.default_message("add_to_cart")
    if not results:
        return "Please search for products first before adding to cart."

    index = parse_index(ctx.param("productIndex"), len(results))
    if index is None:
        return f"Please choose a product number between 1 and {len(results)}."

    product = results[index]
    quantity = int(ctx.param("quantity") or "1")
    catalog.add_to_cart(ctx.require_user(), product.id, quantity)
    return (
        f"Added {quantity} unit(s) of {product.name} to your cart. "
        "Search for more products or type 'checkout' to place your order."
    )


async def handle_place_order(ctx: HandlerContext) -> str:
    address = ctx.param("address")
    method = ctx.param("paymentMethod")
    if not address or not method:
        return (
            "📦 To place your order, send address and payment method:\n"
            "Example: 'order 12 Allen Avenue, Ikeja pay with Flutterwave'\n\n"
            "Payment methods:\n• Flutterwave\n• Paystack\n• Cash on Delivery"
        )

    order = catalog.place_order(ctx.require_user(), address, method)
    await ctx.relay.notify_team(
        SupportRole.ORDERS,
        "New Order Placed",
        ctx.sender_id,
        {"Order ID": order.id, "Payment": method, "Amount": copy.format_money(order.total_amount)},
    )

    lines = [f"✅ Your order has been placed successfully!\n\nOrder ID: #{order.id}"]
    if method in ONLINE_METHODS:
        lines.append(_payment_link_text(order.id, method))
    else:
        lines.append(
            "💵 You've selected Cash on Delivery.\n\nPlease have the exact amount ready "
            "when your order arrives. You'll receive delivery updates shortly."
        )
    return "\n\n".join(lines)


def _payment_link_text(order_id: str, provider: str) -> str:
    try:
        link = payments.create_payment_link(order_id, provider)
    except UpstreamFailure:
        logger.exception("Payment link generation failed for order %s", order_id)
        return f"⚠️ Payment link generation failed. You can pay later or contact support.\nOrder ID: #{order_id}"
    return f"💳 Complete your payment:\n{link.url}\n\nAmount: {copy.format_money(link.amount)}"


def _own_order(ctx: HandlerContext, order_id: str):
    user_id = ctx.require_user()
    order = catalog.track_order(order_id)
    if order.user_id != user_id:
        raise NotFound(f"Order #{order_id} not found. Please verify the order ID.")
    return order


async def handle_track_order(ctx: HandlerContext) -> str:
    order_id = ctx.param("orderId")
    if not order_id:
        return "📍 To track your order, provide the order ID.\n\nExample: 'track 12345'"
    return copy.build_order_status(_own_order(ctx, order_id))


async def handle_payment(ctx: HandlerContext) -> str:
    order_id = ctx.param("orderId")
    provider = ctx.param("provider")
    if not order_id or not provider:
        return "Please provide your order ID and payment provider. Example: 'pay 12345 flutterwave'"
    _own_order(ctx, order_id)
    return _payment_link_text(order_id, provider)


async def handle_healthcare_products(ctx: HandlerContext) -> str:
    category = ctx.param("category") or None
    products = catalog.browse_healthcare_products(category)
    if not products:
        return f"Sorry, we don't have any {category} products right now. Type '8' to browse everything."
    cached = products[: settings.session.max_cached_results]
    ctx.session.data.search_results = cached
    return copy.build_product_list(category or "healthcare products", cached)


async def handle_prescription_upload(ctx: HandlerContext) -> str:
    if ctx.session.data.pending_attachment_ref:
        return "📎 We have your upload. Reply 'rx <order id>' to attach it to your order."
    return copy.default_message("prescription_upload")


async def handle_attachment(ctx: HandlerContext, attachment_ref: str) -> str:
    """Stage an uploaded file until the customer names its order."""
    ctx.session.data.pending_attachment_ref = attachment_ref
    return (
        "📎 Prescription received.\n\n"
        "Reply 'rx <order id>' to attach it to your order.\nExample: rx 12345"
    )


async def handle_quick_attach(ctx: HandlerContext, order_id: str) -> str:
    """
    Finalize a staged upload with ``rx <orderId>``.

    Only the sender's own orders accept attachments. A refused attach keeps
    the staged reference so the sender can retry.
    """
    ref = ctx.session.data.pending_attachment_ref
    if not ref:
        return "There is nothing pending to attach. Send your prescription as an image or PDF first."
    _own_order(ctx, order_id)
    prescriptions.attach_prescription(order_id=order_id, attachment_ref=ref)
    ctx.session.data.pending_attachment_ref = None
    return f"✅ Your prescription has been attached to order #{order_id}."
