"""
Mock pharmacy catalog, cart and order system.

In production, this would integrate with the pharmacy's inventory and
order management API.
"""

import itertools
import logging
from datetime import datetime, timezone
from typing import Optional

from medrelay.errors import NotFound, ValidationError
from medrelay.schemas.catalog_schema import DiagnosticTest, Order, OrderItem, Product

logger = logging.getLogger(__name__)

PRODUCTS: list[Product] = [
    Product(id="P-100", name="Paracetamol 500mg (24 tablets)", price=850.0, category="Pain Relief"),
    Product(id="P-101", name="Ibuprofen 400mg (20 tablets)", price=1200.0, category="Pain Relief"),
    Product(id="P-102", name="Amoxicillin 500mg (21 capsules)", price=2500.0, category="Antibiotics"),
    Product(id="P-103", name="Artemether/Lumefantrine 80/480mg", price=3200.0, category="Antimalarial"),
    Product(id="P-104", name="Vitamin C 1000mg (30 tablets)", price=1800.0, category="Supplements"),
    Product(id="P-105", name="Loratadine 10mg (10 tablets)", price=950.0, category="Allergy"),
    Product(id="P-106", name="Metformin 500mg (30 tablets)", price=2100.0, category="Diabetes"),
    Product(id="P-107", name="Oral Rehydration Salts (10 sachets)", price=700.0, category="Digestive Health"),
]

HEALTHCARE_PRODUCTS: list[Product] = [
    Product(id="H-200", name="First Aid Kit (Family Size)", price=9500.0, category="first aid"),
    Product(id="H-201", name="Digital Thermometer", price=3500.0, category="thermometer"),
    Product(id="H-202", name="Fingertip Pulse Oximeter", price=12500.0, category="oximeter"),
    Product(id="H-203", name="Glucose Meter Starter Pack", price=18000.0, category="glucose meter"),
    Product(id="H-204", name="Elastic Bandage 10cm", price=1200.0, category="bandage"),
    Product(id="H-205", name="Sterile Gauze Pads (25)", price=1500.0, category="gauze"),
]

DIAGNOSTIC_TESTS: list[DiagnosticTest] = [
    DiagnosticTest(id="D-300", name="Full Blood Count", price=6000.0),
    DiagnosticTest(id="D-301", name="Malaria Test", price=3000.0),
    DiagnosticTest(id="D-302", name="Typhoid Test", price=3500.0),
    DiagnosticTest(id="D-303", name="Thyroid Test", price=15000.0),
    DiagnosticTest(id="D-304", name="Glucose Test", price=2500.0),
    DiagnosticTest(id="D-305", name="Lipid Profile", price=12000.0),
    DiagnosticTest(id="D-306", name="Urinalysis", price=2000.0, sample_type="urine"),
    DiagnosticTest(id="D-307", name="COVID Test", price=20000.0, sample_type="swab"),
]

_carts: dict[str, list[OrderItem]] = {}
_orders: dict[str, Order] = {}
_order_ids = itertools.count(10001)


def _find_product(product_id: str) -> Optional[Product]:
    for product in itertools.chain(PRODUCTS, HEALTHCARE_PRODUCTS):
        if product.id == product_id:
            return product
    return None


def search_products(query: str) -> list[Product]:
    """Case-insensitive match on product name or category."""
    needle = query.strip().lower()
    if not needle:
        raise ValidationError("Missing product name", field_name="product")
    return [
        p for p in itertools.chain(PRODUCTS, HEALTHCARE_PRODUCTS)
        if needle in p.name.lower() or needle in p.category.lower()
    ]


def browse_healthcare_products(category: Optional[str] = None) -> list[Product]:
    if not category:
        return list(HEALTHCARE_PRODUCTS)
    needle = category.lower()
    return [p for p in HEALTHCARE_PRODUCTS if needle in p.category or needle in p.name.lower()]


def search_diagnostic_tests(test_type: Optional[str] = None) -> list[DiagnosticTest]:
    if not test_type:
        return list(DIAGNOSTIC_TESTS)
    # "blood test" should find "Full Blood Count"; match on the leading word.
    needle = test_type.lower().replace(" test", "").strip()
    return [t for t in DIAGNOSTIC_TESTS if needle in t.name.lower()]


def add_to_cart(user_id: str, product_id: str, quantity: int) -> list[OrderItem]:
    """Add ``quantity`` units of a product; returns the updated cart."""
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", field_name="quantity")
    product = _find_product(product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")

    cart = _carts.setdefault(user_id, [])
    for item in cart:
        if item.product_id == product_id:
            item.quantity += quantity
            break
    else:
        cart.append(OrderItem(product_id=product.id, name=product.name, quantity=quantity, price=product.price))
    logger.info("Cart for %s: +%d x %s", user_id, quantity, product_id)
    return list(cart)


def get_cart(user_id: str) -> list[OrderItem]:
    return list(_carts.get(user_id, []))


def place_order(user_id: str, address: str, payment_method: str) -> Order:
    """Turn the user's cart into an order."""
    if not address.strip():
        raise ValidationError("Missing delivery address", field_name="address")
    if not payment_method.strip():
        raise ValidationError("Missing payment method", field_name="paymentMethod")
    cart = _carts.get(user_id)
    if not cart:
        raise ValidationError("Your cart is empty. Search for products and add them first.", field_name="cart")

    order = Order(
        id=str(next(_order_ids)),
        user_id=user_id,
        items=list(cart),
        total_amount=sum(item.price * item.quantity for item in cart),
        payment_method=payment_method,
        shipping_address=address.strip(),
        order_date=datetime.now(timezone.utc),
    )
    _orders[order.id] = order
    _carts.pop(user_id, None)
    logger.info("Order %s placed by %s (%s)", order.id, user_id, payment_method)
    return order


def track_order(order_id: str) -> Order:
    order = _orders.get(order_id.strip())
    if order is None:
        raise NotFound(f"Order #{order_id} not found. Please verify the order ID.")
    return order


def reset() -> None:
    """Clear carts and orders. Used by test fixtures for isolation."""
    global _order_ids
    _carts.clear()
    _orders.clear()
    _order_ids = itertools.count(10001)
