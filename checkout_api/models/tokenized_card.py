"""
TokenizedCard model — a card stored as a surrogate token.

The vault never holds the card number or CVV. What it keeps:
  - token: SHA-256 hex of the card number. Deterministic, so tokenizing the
    same card twice yields the same token, and the UNIQUE index on this
    column is what rejects duplicates (no read-then-insert check).
  - last_four_digits: plaintext, for "ending in 6467" displays
  - expiration_encrypted: "MM/YY" encrypted with AES-256-GCM
    (Base64 of IV || ciphertext || tag, see security.SymmetricCipher)

A card is bound to exactly one client for its whole life; client_id is
never reassigned. Cards are create-only: nothing in the service layer
updates them after insertion.

Enterprise note:
  Hashing a card number without a secret pepper is reversible by brute
  force over the card-number space. A PCI DSS-compliant deployment would
  use a keyed HMAC or a vault provider instead; this model demonstrates
  the shape of the data, not a compliance claim.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from checkout_api.database import Base


class TokenizedCard(Base):
    __tablename__ = "tokenized_cards"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this card
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )

    # SHA-256 hex (64 chars), globally UNIQUE
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )

    # Last four digits in plaintext for display
    last_four_digits: Mapped[str] = mapped_column(
        String(4),
        nullable=False,
    )

    # "MM/YY", AES-256-GCM encrypted and Base64-encoded
    expiration_encrypted: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    client: Mapped["Client"] = relationship(
        back_populates="cards",
    )
