"""
Payment service — the payment state machine for orders.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. An order is in one of:
  - OPEN:    not blocked, no SUCCESS transaction yet
  - PAID:    a SUCCESS transaction exists (terminal)
  - BLOCKED: is_blocked is true (terminal)

process_payment() performs one attempt:
  1. Load the order (FOR UPDATE) and verify it belongs to the caller
  2. If a card was supplied, verify it belongs to the caller too
  3. Refuse if the order is already paid
  4. attempt_no = highest recorded attempt + 1
  5. Refuse and block if the order is blocked or attempt_no exceeds
     payment.max_attempts
  6. Draw the simulated provider decision against payment.rejection_rate
  7. Append a PaymentTransaction row, SUCCESS or REJECTED
  8. On rejection: block the order if this was the last allowed attempt,
     and queue a notice to the client

Durability:
  The audit row (and an is_blocked flip) must survive a rejection. A
  rejection is therefore NOT raised as an exception: this service commits
  explicitly and returns a PaymentOutcome with rejected=True, and the
  orders router turns it into a 400 response. The rejection notice is
  queued only after the commit succeeded.

Concurrency:
  The UNIQUE (order_id, attempt_no) constraint is what stops two
  concurrent attempts from recording the same number. The loser's insert
  fails with IntegrityError; its transaction is rolled back and the whole
  attempt re-run from a fresh read. After MAX_CONFLICT_RETRIES collisions
  PaymentConflictError is raised.

SQLite note:
  with_for_update() is a no-op on SQLite; the unique constraint alone
  keeps attempt numbers contiguous there. On PostgreSQL the row lock also
  serializes attempts on the same order.
"""

import logging
import random
import uuid
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import (
    AccessDeniedError,
    OrderAlreadyPaidError,
    OrderBlockedError,
    OrderNotFoundError,
    PaymentConflictError,
)
from checkout_api.models.client import Client
from checkout_api.models.order import Order
from checkout_api.models.payment_transaction import PaymentStatus, PaymentTransaction
from checkout_api.services import card_service, preference_service
from checkout_api.services.notification_service import RejectionNotice, RejectionNotifier

logger = logging.getLogger(__name__)

REJECTION_MESSAGE = (
    "El servicio de pago ha rechazado su transaccion, valide los datos ingresados."
)

MAX_CONFLICT_RETRIES = 3


@dataclass
class PaymentOutcome:
    """
    Result of one payment attempt that was recorded.

    Attributes:
        transaction: The committed audit row.
        rejected: True when the simulated provider refused the payment.
        message: The rejection message, None on success.
        order_blocked: True when this rejection used up the last attempt.
    """
    transaction: PaymentTransaction
    rejected: bool = False
    message: str | None = None
    order_blocked: bool = False


def payment_rejected(rejection_rate: int) -> bool:
    """Draw x in 1..100; the attempt is rejected when x <= rejection_rate."""
    return random.randint(1, 100) <= rejection_rate


async def _max_attempt(db: AsyncSession, order_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.max(PaymentTransaction.attempt_no))
        .where(PaymentTransaction.order_id == order_id)
    )
    return result.scalar_one_or_none() or 0


async def _has_success(db: AsyncSession, order_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(PaymentTransaction.id)
        .where(PaymentTransaction.order_id == order_id)
        .where(PaymentTransaction.status == PaymentStatus.SUCCESS)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def _attempt_payment(
    db: AsyncSession,
    order_id: uuid.UUID,
    client_id: uuid.UUID,
    card_id: uuid.UUID | None,
    max_attempts: int,
    rejection_rate: int,
) -> tuple[PaymentOutcome, RejectionNotice | None]:
    """One pass of the state machine. Flushes but does not commit on the normal path."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()  # No-op on SQLite, locks row on PostgreSQL
    )
    order = result.scalar_one_or_none()

    if order is None:
        raise OrderNotFoundError(order_id)
    if order.client_id != client_id:
        raise AccessDeniedError("You do not have access to this order")

    if card_id is not None:
        await card_service.find_for_client(db, card_id, client_id)

    if await _has_success(db, order_id):
        raise OrderAlreadyPaidError(order_id)

    attempt_no = await _max_attempt(db, order_id) + 1

    if order.is_blocked or attempt_no > max_attempts:
        if not order.is_blocked:
            order.is_blocked = True
            await db.commit()
            logger.warning(
                "Order %s blocked: attempt %d exceeds the limit of %d",
                order_id, attempt_no, max_attempts,
            )
        raise OrderBlockedError(order_id)

    rejected = payment_rejected(rejection_rate)
    transaction = PaymentTransaction(
        order_id=order.id,
        correlation_id=uuid.uuid4(),
        amount_cents=order.total_amount_cents,
        status=PaymentStatus.REJECTED if rejected else PaymentStatus.SUCCESS,
        attempt_no=attempt_no,
    )
    db.add(transaction)
    await db.flush()

    if not rejected:
        logger.info("Payment attempt %d on order %s succeeded", attempt_no, order_id)
        return PaymentOutcome(transaction=transaction), None

    order_blocked = attempt_no == max_attempts
    if order_blocked:
        order.is_blocked = True
        await db.flush()

    client = await db.get(Client, order.client_id)
    notice = RejectionNotice(
        client_id=client.id,
        email=client.email,
        first_name=client.first_name,
        last_name=client.last_name,
        order_id=order.id,
        amount=order.total_amount,
        reason=REJECTION_MESSAGE,
    )
    logger.info(
        "Payment attempt %d/%d on order %s rejected%s",
        attempt_no, max_attempts, order_id,
        ", order blocked" if order_blocked else "",
    )
    outcome = PaymentOutcome(
        transaction=transaction,
        rejected=True,
        message=REJECTION_MESSAGE,
        order_blocked=order_blocked,
    )
    return outcome, notice


async def process_payment(
    db: AsyncSession,
    order_id: uuid.UUID,
    client_id: uuid.UUID,
    notifier: RejectionNotifier,
    card_id: uuid.UUID | None = None,
) -> PaymentOutcome:
    """
    Make one payment attempt on an order and commit its audit row.

    Preferences are read once, at the start of the call.

    Args:
        db: Database session. Committed by this function.
        order_id: The order to pay.
        client_id: The authenticated client (must own the order).
        notifier: Receives a RejectionNotice after a rejected attempt commits.
        card_id: Optional card to pay with (must belong to the client).

    Returns:
        PaymentOutcome. outcome.rejected tells success from rejection;
        either way the transaction is committed.

    Raises:
        OrderNotFoundError: If the order doesn't exist.
        AccessDeniedError: If the order or card belongs to someone else.
        CardNotFoundError: If the supplied card doesn't exist.
        OrderAlreadyPaidError: If the order already has a SUCCESS transaction.
        OrderBlockedError: If the order is blocked or out of attempts.
        PaymentConflictError: If concurrent attempts kept colliding.
        PreferenceMissingError / PreferenceNotIntegerError /
        PreferenceOutOfRangeError: If payment preferences are misconfigured.
    """
    max_attempts = await preference_service.get_int(
        db, preference_service.PAYMENT_MAX_ATTEMPTS, minimum=1
    )
    rejection_rate = await preference_service.get_rate(
        db, preference_service.PAYMENT_REJECTION_RATE
    )

    for retry in range(MAX_CONFLICT_RETRIES):
        try:
            outcome, notice = await _attempt_payment(
                db, order_id, client_id, card_id, max_attempts, rejection_rate
            )
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Attempt number collision on order %s (retry %d of %d)",
                order_id, retry + 1, MAX_CONFLICT_RETRIES,
            )
            continue

        if notice is not None:
            notifier.notify_rejection(notice)
        return outcome

    raise PaymentConflictError(order_id)


async def list_transactions(db: AsyncSession, order_id: uuid.UUID) -> list[PaymentTransaction]:
    """All attempts recorded for an order, in attempt order. Ownership is checked by the caller."""
    result = await db.execute(
        select(PaymentTransaction)
        .where(PaymentTransaction.order_id == order_id)
        .order_by(PaymentTransaction.attempt_no)
    )
    return list(result.scalars().all())
