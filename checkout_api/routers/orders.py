"""
Orders router — order creation, listing and payment.

Endpoints:
  POST /api/v1/orders                           — Create an OPEN order
  GET  /api/v1/orders                           — List my orders
  GET  /api/v1/orders/{order_id}/transactions   — List payment attempts of an order
  POST /api/v1/orders/{order_id}/pay            — Make one payment attempt

All endpoints require a JWT and are scoped to the authenticated client.

Payment responses:
  200 — the attempt succeeded; body is the transaction
  400 — the provider rejected the attempt. The attempt is still recorded:
        the body carries the rejection message, error_type
        "payment_rejected" and the audited transaction
  400 — order_blocked: no attempts left
  409 — order_already_paid / payment_conflict
"""

import uuid

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.database import get_db
from checkout_api.dependencies import get_current_client, get_notifier
from checkout_api.models.client import Client
from checkout_api.schemas.order import OrderCreateRequest, OrderSummary
from checkout_api.schemas.payment import PaymentRequest, PaymentResponse
from checkout_api.services import order_service, payment_service
from checkout_api.services.notification_service import RejectionNotifier

router = APIRouter()


@router.post(
    "",
    response_model=OrderSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Create an order",
)
async def create_order(
    request: OrderCreateRequest,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an OPEN order paid with one of my stored cards.

    - **tokenizedCardId**: Must be one of my cards (403 otherwise)
    - **totalAmountCents**: Order total in cents, e.g. 4200 = $42.00
    """
    return await order_service.create_order(
        db,
        client_id=client.id,
        card_id=request.tokenized_card_id,
        delivery_address=request.delivery_address,
        total_amount_cents=request.total_amount_cents,
    )


@router.get(
    "",
    response_model=list[OrderSummary],
    summary="List my orders",
)
async def list_orders(
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.list_orders(db, client.id)


@router.get(
    "/{order_id}/transactions",
    response_model=list[PaymentResponse],
    summary="List payment attempts for an order",
)
async def list_order_transactions(
    order_id: uuid.UUID,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    transactions = await order_service.list_order_transactions(db, order_id, client.id)
    return [PaymentResponse.from_transaction(tx) for tx in transactions]


@router.post(
    "/{order_id}/pay",
    response_model=PaymentResponse,
    summary="Pay an order",
    responses={400: {"description": "Payment rejected or order blocked"}},
)
async def pay_order(
    order_id: uuid.UUID,
    request: PaymentRequest | None = None,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
    notifier: RejectionNotifier = Depends(get_notifier),
):
    """
    Make one payment attempt.

    Every attempt that reaches the provider is recorded, whether it
    succeeds or is rejected. After payment.max_attempts rejections the
    order is blocked.
    """
    outcome = await payment_service.process_payment(
        db,
        order_id=order_id,
        client_id=client.id,
        notifier=notifier,
        card_id=request.tokenized_card_id if request else None,
    )
    response = PaymentResponse.from_transaction(outcome.transaction)

    if outcome.rejected:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": outcome.message,
                "error_type": "payment_rejected",
                "order_blocked": outcome.order_blocked,
                "transaction": response.model_dump(mode="json", by_alias=True),
            },
        )
    return response
