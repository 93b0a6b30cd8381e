"""
Pydantic schemas for the payment endpoint.

Amounts are exposed as 2-decimal values (e.g., "42.00"); storage uses
integer cents.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from checkout_api.models.payment_transaction import PaymentTransaction
from checkout_api.schemas.card import CAMEL_CONFIG


class PaymentRequest(BaseModel):
    """Request body for POST /api/v1/orders/{order_id}/pay."""
    tokenized_card_id: uuid.UUID | None = None

    model_config = CAMEL_CONFIG


class PaymentResponse(BaseModel):
    """One payment attempt, successful or rejected."""
    transaction_id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    status: str
    attempt_no: int
    correlation_id: uuid.UUID
    transaction_date: datetime

    model_config = CAMEL_CONFIG

    @classmethod
    def from_transaction(cls, transaction: PaymentTransaction) -> "PaymentResponse":
        return cls(
            transaction_id=transaction.id,
            order_id=transaction.order_id,
            amount=transaction.amount,
            status=transaction.status.value,
            attempt_no=transaction.attempt_no,
            correlation_id=transaction.correlation_id,
            transaction_date=transaction.recorded_at,
        )
