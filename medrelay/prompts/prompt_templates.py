"""Customer- and agent-facing message copy and builders."""

from typing import Optional

from medrelay.config import settings
from medrelay.schemas.catalog_schema import DiagnosticTest, Doctor, Order, Product

_biz = settings.business

HELP_MESSAGE = f"""🏥 *{_biz.name} WhatsApp Bot - Available Services:*

1️⃣ *Search Medicines* - Type "1" or "find paracetamol"
2️⃣ *Find Doctors* - Type "2" or "find a cardiologist"
3️⃣ *Track Orders* - Type "3" or "track 12345"
4️⃣ *Book Appointment* - Type "4" or "book a doctor"
5️⃣ *Place Order* - Type "5" or "order medicines"
6️⃣ *Customer Support* - Type "6" or "connect me to support"
7️⃣ *Book Diagnostic Tests* - Type "7" or "book a blood test"
8️⃣ *Healthcare Products* - Type "8" or "browse health products"

Simply reply with a number (1-8) or describe what you need!"""

AUTH_REQUIRED_MESSAGE = (
    "🔐 *Authentication Required*\n\n"
    "You need to be logged in to access this feature.\n\n"
    "Please login with your email and password:\n"
    "Example: login john@example.com mypassword\n\n"
    "Or register if you're new:\n"
    "Example: register John Doe john@example.com mypassword\n\n"
    '📋 Type "help" to see all options.'
)

GENERIC_APOLOGY = "Sorry, something went wrong. Please try again later."

HELP_HINT = "Type 'help' to see what I can do."

DEFAULT_MESSAGES: dict[str, str] = {
    "help": HELP_MESSAGE,
    "register": (
        "I'll help you register. Please provide your full name, email, and a password.\n\n"
        "Example: register John Doe john@example.com mypassword"
    ),
    "login": (
        "I'll help you login. Please provide your email and password.\n\n"
        "Example: login john@example.com mypassword"
    ),
    "product_search": "What medicine or product are you looking for?",
    "add_to_cart": (
        "Please specify the product number and quantity.\n\n"
        "Example: add 1 2 (adds 2 units of product 1)"
    ),
    "place_order": (
        "I can help you place an order. Please provide your delivery address and payment method."
    ),
    "track_order": "Please provide your order ID to track it.\n\nExample: track 12345",
    "search_doctors": "What type of doctor are you looking for? (e.g., cardiologist, pediatrician)",
    "book_appointment": (
        "I can help you book an appointment. Please provide the doctor and your preferred date and time."
    ),
    "payment": "I can help you make a payment. Please provide your order ID and preferred payment method.",
    "support": "Connecting you to our support team. Please describe your issue.",
    "diagnostic_tests": (
        "What diagnostic test would you like to book? (e.g., blood test, malaria test, thyroid test)"
    ),
    "healthcare_products": (
        "What healthcare product would you like to browse? (e.g., first aid kit, thermometer, oximeter)"
    ),
    "password_reset": "I'll help you reset your password. Please provide your email address.",
    "prescription_upload": (
        "Please upload your prescription document (image or PDF) by sending it as an attachment."
    ),
    "logout": 'You have been logged out. Type "help" to get started again.',
    "unknown": f"I'm not sure how to help with that. {HELP_HINT}",
}


def default_message(intent: str) -> str:
    return DEFAULT_MESSAGES.get(intent, DEFAULT_MESSAGES["unknown"])


def format_with_options(message: str, logged_in: bool) -> str:
    """Append the navigation footer shown under every bot reply."""
    footer = "\n\n---\n"
    if logged_in:
        footer += '📋 *Options:* Type "help" for menu | "logout" to sign out'
    else:
        footer += '📋 *Options:* Type "help" for menu | "login" to sign in | "register" to create account'
    return message + footer


def format_money(amount: float) -> str:
    return f"{_biz.currency_symbol}{amount:,.2f}"


def build_product_list(query: str, products: list[Product]) -> str:
    lines = [f'Here are some products matching "{query}":', ""]
    for index, product in enumerate(products, start=1):
        lines.append(f"{index}. {product.name}")
        lines.append(f"   Price: {format_money(product.price)}")
        lines.append(f"   Category: {product.category}")
        lines.append("")
    lines.append(
        'To add a product to your cart, reply with "add [product number] [quantity]"\n'
        'Example: "add 1 2" to add 2 units of the first product.'
    )
    return "\n".join(lines)


def build_doctor_list(specialty: str, location: str, doctors: list[Doctor]) -> str:
    lines = [f"Here are some {specialty} doctors in {location}:", ""]
    for index, doctor in enumerate(doctors, start=1):
        lines.append(f"{index}. Dr. {doctor.name}")
        lines.append(f"   Specialty: {doctor.specialty}")
        lines.append(f"   Location: {doctor.location}")
        lines.append(f"   Rating: {doctor.rating}/5")
        lines.append("")
    lines.append(
        'To book an appointment, reply with "book [doctor number] [date] [time]"\n'
        'Example: "book 1 2030-06-15 14:00"'
    )
    return "\n".join(lines)


_STATUS_EMOJI = {
    "Processing": "⏳",
    "Shipped": "🚚",
    "Delivered": "✅",
    "Cancelled": "❌",
}


def build_order_status(order: Order) -> str:
    lines = [
        f"{_STATUS_EMOJI.get(order.status, '📦')} *Order #{order.id} Status*",
        "",
        f"Status: {order.status}",
        f"Placed: {order.order_date:%Y-%m-%d}",
        f"Amount: {format_money(order.total_amount)}",
        f"Payment: {order.payment_status}",
        "",
        "*Items:*",
    ]
    if order.items:
        for item in order.items:
            lines.append(f"• {item.name} x{item.quantity} = {format_money(item.price * item.quantity)}")
    else:
        lines.append("• No items found")
    lines.append("")
    lines.append("*Delivery Address:*")
    lines.append(order.shipping_address or "Not provided")
    lines.append("")
    lines.append("Need help? Type 'support' to chat with our team.")
    return "\n".join(lines)


def build_diagnostic_list(tests: list[DiagnosticTest], test_type: Optional[str]) -> str:
    heading = f'Diagnostic tests matching "{test_type}":' if test_type else "Available diagnostic tests:"
    lines = [heading, ""]
    for test in tests:
        lines.append(f"• {test.name} ({test.sample_type}) - {format_money(test.price)}")
    lines.append("")
    lines.append("Type 'support' and our medical team will schedule your sample collection.")
    return "\n".join(lines)


def build_team_notification(customer_id: str, activity: str, details: Optional[dict] = None) -> str:
    lines = ["🔔 New Customer Activity:", "", f"Customer: {customer_id}", f"Activity: {activity}"]
    for key, value in (details or {}).items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


# --- Support relay copy ---

SUPPORT_CONNECTED = (
    "You're now connected with {agent_name} from our {role} support team. "
    "Please describe your issue and a support agent will assist you shortly."
)
SUPPORT_NEW_REQUEST = "🆘 New support request from {customer_id}. Please respond to assist."
SUPPORT_CUSTOMER_PREFIX = "👤 {customer_id}: {text}"
SUPPORT_AGENT_PREFIX = "👨‍💼 Support: {text}"
SUPPORT_ATTACHMENT_NOTE = "📎 Sent an attachment (media {ref})"
SUPPORT_CHAT_ENDED_CUSTOMER = (
    f"Your support chat has ended. Thank you for contacting {_biz.name} support. "
    "Is there anything else I can help you with?"
)
SUPPORT_CHAT_ENDED_AGENT = "✅ Support chat with {customer_id} has ended."
SUPPORT_NO_AGENT = (
    "Sorry, no support agent is available right now. Please try again later "
    "or email us and we'll get back to you."
)
SUPPORT_NO_ACTIVE_CHAT = "No active chat found. Please wait for a customer to initiate a chat."
SUPPORT_NO_UNREAD = "No unread messages."
SUPPORT_COMMANDS_HINT = "Unknown command. Available commands: /chats, /end"


def build_unread_summary(messages) -> str:
    lines = [f"You have {len(messages)} unread message(s):", ""]
    for msg in messages:
        lines.append(SUPPORT_CUSTOMER_PREFIX.format(customer_id=msg.customer_id, text=msg.text))
        lines.append("")
    return "\n".join(lines).rstrip()
