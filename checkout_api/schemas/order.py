"""
Pydantic schemas for Order endpoints.

Order views are built explicitly from ORM objects while the session is
still open (see OrderSummary.from_order), so serialization never
triggers a lazy load.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from checkout_api.models.order import Order
from checkout_api.schemas.card import CAMEL_CONFIG


class OrderCreateRequest(BaseModel):
    """Request body for POST /api/v1/orders."""
    tokenized_card_id: uuid.UUID
    delivery_address: str = Field(min_length=1, max_length=100)
    total_amount_cents: int = Field(ge=0, description="Order total in cents")

    model_config = CAMEL_CONFIG


class OrderSummary(BaseModel):
    """Public representation of an order and its payment state."""
    order_id: uuid.UUID
    client_id: uuid.UUID
    card_id: uuid.UUID
    card_last_four_digits: str
    total_amount_cents: int
    total_amount: Decimal
    delivery_address: str
    is_blocked: bool
    created_at: datetime

    model_config = CAMEL_CONFIG

    @classmethod
    def from_order(cls, order: Order, card_last_four_digits: str) -> "OrderSummary":
        return cls(
            order_id=order.id,
            client_id=order.client_id,
            card_id=order.card_id,
            card_last_four_digits=card_last_four_digits,
            total_amount_cents=order.total_amount_cents,
            total_amount=order.total_amount,
            delivery_address=order.delivery_address,
            is_blocked=order.is_blocked,
            created_at=order.created_at,
        )
