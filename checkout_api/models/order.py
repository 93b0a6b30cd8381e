"""
Order model — a purchase awaiting (or done with) payment.

Payment state is derived, not stored as a column:
  - OPEN:    is_blocked is false and no SUCCESS transaction exists
  - PAID:    a SUCCESS transaction exists (terminal)
  - BLOCKED: is_blocked is true (terminal)

is_blocked is monotonic. The payment service sets it once attempts are
exhausted and nothing ever clears it.

Why integer cents?
  Floating-point numbers introduce rounding errors in financial
  calculations (0.1 + 0.2 != 0.3 in IEEE 754). Amounts are stored as
  integer cents and exposed to the API as 2-decimal values.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from checkout_api.database import Base


class Order(Base):
    __tablename__ = "orders"

    __table_args__ = (
        CheckConstraint(
            "total_amount_cents >= 0",
            name="ck_orders_non_negative_total",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this order
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )

    # Card chosen at checkout. A reference; the order does not own the card.
    # Must belong to the same client (checked by order_service).
    card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tokenized_cards.id"),
        nullable=False,
    )

    total_amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    delivery_address: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Once true, stays true
    is_blocked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    client: Mapped["Client"] = relationship(
        back_populates="orders",
    )
    card: Mapped["TokenizedCard"] = relationship()

    @property
    def total_amount(self) -> Decimal:
        """Total as a 2-decimal value (e.g., 4200 cents -> Decimal('42.00'))."""
        return Decimal(self.total_amount_cents).scaleb(-2)
