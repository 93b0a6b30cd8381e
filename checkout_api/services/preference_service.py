"""
Preference service — runtime knobs stored in the system_preferences table.

Two audiences:
  - The tokenization and payment services call get_int() on every request.
    Nothing is cached, so an operator's change applies to the next call.
  - The /api/v1/preferences endpoints create, read and update rows.

Misconfiguration (missing key, non-integer value, out-of-range value) is
an operational failure: the error handlers log it and answer 500.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import (
    DuplicatePreferenceError,
    PreferenceMissingError,
    PreferenceNotFoundError,
    PreferenceNotIntegerError,
    PreferenceOutOfRangeError,
)
from checkout_api.models.system_preference import SystemPreference

logger = logging.getLogger(__name__)

PAYMENT_REJECTION_RATE = "payment.rejection_rate"
PAYMENT_MAX_ATTEMPTS = "payment.max_attempts"
TOKEN_REJECTION_RATE = "tokencard.rejection_rate"

# Seeded at startup when absent: (key, value, data_type, description)
DEFAULT_PREFERENCES = [
    (
        PAYMENT_REJECTION_RATE, "20", "INTEGER",
        "Percent chance (0-100) that a payment attempt is rejected.",
    ),
    (
        PAYMENT_MAX_ATTEMPTS, "3", "INTEGER",
        "Maximum payment attempts per order before it is blocked.",
    ),
    (
        TOKEN_REJECTION_RATE, "20", "INTEGER",
        "Percent chance (0-100) that card tokenization is rejected.",
    ),
]


async def _find(db: AsyncSession, key: str) -> SystemPreference | None:
    result = await db.execute(
        select(SystemPreference).where(SystemPreference.pref_key == key)
    )
    return result.scalar_one_or_none()


async def get_int(
    db: AsyncSession,
    key: str,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """
    Read a preference as an integer.

    Args:
        db: Database session.
        key: Preference key, e.g. "payment.max_attempts".
        minimum: Optional inclusive lower bound.
        maximum: Optional inclusive upper bound.

    Raises:
        PreferenceMissingError: If the key is not configured.
        PreferenceNotIntegerError: If the stored value is not an integer.
        PreferenceOutOfRangeError: If the value is outside [minimum, maximum].
    """
    preference = await _find(db, key)
    if preference is None:
        raise PreferenceMissingError(key)

    try:
        value = int(preference.pref_value.strip())
    except ValueError:
        raise PreferenceNotIntegerError(key, preference.pref_value) from None

    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        raise PreferenceOutOfRangeError(key, value)

    return value


async def get_rate(db: AsyncSession, key: str) -> int:
    """Read a percentage preference, which must lie in [0, 100]."""
    return await get_int(db, key, minimum=0, maximum=100)


async def get_preference(db: AsyncSession, key: str) -> SystemPreference:
    """
    Get a preference row for the admin endpoints.

    Raises:
        PreferenceNotFoundError: If the key does not exist.
    """
    preference = await _find(db, key)
    if preference is None:
        raise PreferenceNotFoundError(key)
    return preference


async def create_preference(
    db: AsyncSession,
    key: str,
    value: str,
    data_type: str,
    description: str | None = None,
) -> SystemPreference:
    """
    Create a new preference.

    Raises:
        DuplicatePreferenceError: If the key already exists.
    """
    if await _find(db, key) is not None:
        raise DuplicatePreferenceError(key)

    preference = SystemPreference(
        pref_key=key,
        pref_value=value,
        data_type=data_type,
        description=description,
    )
    db.add(preference)
    await db.flush()
    logger.info("Created preference %s=%s", key, value)
    return preference


async def update_preference(
    db: AsyncSession,
    key: str,
    value: str,
    data_type: str,
) -> SystemPreference:
    """
    Update the value and data type of an existing preference.

    Raises:
        PreferenceNotFoundError: If the key does not exist.
    """
    preference = await get_preference(db, key)
    preference.pref_value = value
    preference.data_type = data_type
    await db.flush()
    logger.info("Updated preference %s=%s", key, value)
    return preference


async def seed_defaults(db: AsyncSession) -> int:
    """
    Insert DEFAULT_PREFERENCES that are not present yet. Existing values are left alone.

    Returns:
        The number of preferences created.
    """
    created = 0
    for key, value, data_type, description in DEFAULT_PREFERENCES:
        if await _find(db, key) is None:
            db.add(SystemPreference(
                pref_key=key,
                pref_value=value,
                data_type=data_type,
                description=description,
            ))
            created += 1
            logger.info("Seeded default preference %s=%s", key, value)
    await db.flush()
    return created
