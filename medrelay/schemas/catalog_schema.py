"""Catalog, order and appointment data models returned by business capabilities."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """Medicine or healthcare product listing."""
    id: str
    name: str
    price: float
    category: str


class OrderItem(BaseModel):
    product_id: str
    name: str
    quantity: int
    price: float


class Order(BaseModel):
    """Placed order."""
    id: str
    user_id: str
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float = 0.0
    status: str = "Processing"
    payment_status: str = "Pending"
    payment_method: str = ""
    shipping_address: str = ""
    order_date: datetime
    prescription_refs: list[str] = Field(default_factory=list)


class Doctor(BaseModel):
    """Doctor directory entry."""
    id: str
    name: str
    specialty: str
    location: str
    rating: float = 0.0


class Appointment(BaseModel):
    id: str
    user_id: str
    doctor_id: str
    scheduled_for: datetime
    status: str = "Scheduled"


class DiagnosticTest(BaseModel):
    id: str
    name: str
    price: float
    sample_type: str = "blood"


class AuthResult(BaseModel):
    """Outcome of a successful registration or login."""
    user_id: str
    token: str
    name: str


class PaymentLink(BaseModel):
    provider: str
    url: str
    reference: str
    amount: float
    currency: Optional[str] = None
