"""
SystemPreference model — runtime configuration stored in the database.

Each row is a key -> string value with a declared data type ("INTEGER",
"STRING", ...). Unlike settings in config.py, preferences can be changed
through the API while the service runs, and the services re-read them on
every call, so a change takes effect on the next request.

Keys consumed by the payment and card services:
  - payment.rejection_rate    INTEGER in [0, 100]
  - payment.max_attempts      INTEGER >= 1
  - tokencard.rejection_rate  INTEGER in [0, 100]
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from checkout_api.database import Base


class SystemPreference(Base):
    __tablename__ = "system_preferences"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    pref_key: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )

    pref_value: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    data_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
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
