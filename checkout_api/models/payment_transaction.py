"""
PaymentTransaction model — one audit row per payment attempt.

Every call to the payment service that gets past the ownership and
attempt-limit checks leaves exactly one row here, whether the simulated
provider accepted or rejected it. Rows are append-only.

Key fields:
  - attempt_no: 1-based position of the attempt within its order. The
    UNIQUE (order_id, attempt_no) constraint guarantees two concurrent
    attempts can never both record the same number; for each order the
    values form the contiguous sequence 1..N.
  - correlation_id: fresh UUID per attempt, handed to the customer so
    support can trace a specific attempt.
  - amount_cents: the order total at the time of the attempt.
  - status: SUCCESS or REJECTED. After the first SUCCESS no further rows
    are appended for that order.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from checkout_api.database import Base


class PaymentStatus(str, enum.Enum):
    """
    Outcome of a single payment attempt.

    Inherits from str so the enum value serializes naturally to JSON.
    """
    SUCCESS = "SUCCESS"
    REJECTED = "REJECTED"


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    __table_args__ = (
        UniqueConstraint("order_id", "attempt_no", name="uq_payment_transactions_order_attempt"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id"),
        nullable=False,
        index=True,
    )

    correlation_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        default=uuid.uuid4,
    )

    amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        nullable=False,
    )

    attempt_no: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def amount(self) -> Decimal:
        """Amount as a 2-decimal value."""
        return Decimal(self.amount_cents).scaleb(-2)
