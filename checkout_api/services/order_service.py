"""
Order service — creating and reading a client's orders.

Orders are created OPEN with a card that must belong to the same client.
Payment state changes happen only in payment_service.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import AccessDeniedError, OrderNotFoundError
from checkout_api.models.order import Order
from checkout_api.models.payment_transaction import PaymentTransaction
from checkout_api.models.tokenized_card import TokenizedCard
from checkout_api.schemas.order import OrderSummary
from checkout_api.services import card_service, payment_service

logger = logging.getLogger(__name__)


async def create_order(
    db: AsyncSession,
    client_id: uuid.UUID,
    card_id: uuid.UUID,
    delivery_address: str,
    total_amount_cents: int,
) -> OrderSummary:
    """
    Create an OPEN order paid with one of the client's cards.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        AccessDeniedError: If the card belongs to another client.
    """
    card = await card_service.find_for_client(db, card_id, client_id)

    order = Order(
        client_id=client_id,
        card_id=card.id,
        delivery_address=delivery_address,
        total_amount_cents=total_amount_cents,
    )
    db.add(order)
    await db.flush()

    logger.info("Created order %s for client %s", order.id, client_id)
    return OrderSummary.from_order(order, card.last_four_digits)


async def get_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    client_id: uuid.UUID,
) -> Order:
    """
    Get an order, verifying ownership.

    Raises:
        OrderNotFoundError: If the order doesn't exist.
        AccessDeniedError: If the order belongs to another client.
    """
    order = await db.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.client_id != client_id:
        raise AccessDeniedError("You do not have access to this order")
    return order


async def list_orders(db: AsyncSession, client_id: uuid.UUID) -> list[OrderSummary]:
    """List the client's orders, newest first."""
    result = await db.execute(
        select(Order, TokenizedCard.last_four_digits)
        .join(TokenizedCard, Order.card_id == TokenizedCard.id)
        .where(Order.client_id == client_id)
        .order_by(Order.created_at.desc())
    )
    return [OrderSummary.from_order(order, last_four) for order, last_four in result.all()]


async def list_order_transactions(
    db: AsyncSession,
    order_id: uuid.UUID,
    client_id: uuid.UUID,
) -> list[PaymentTransaction]:
    """
    List every payment attempt recorded for an owned order.

    Raises:
        OrderNotFoundError: If the order doesn't exist.
        AccessDeniedError: If the order belongs to another client.
    """
    await get_order(db, order_id, client_id)
    return await payment_service.list_transactions(db, order_id)
