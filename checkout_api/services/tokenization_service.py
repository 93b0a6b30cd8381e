"""
Tokenization service — turns raw card data into a surrogate token.

Stands in for an external tokenization provider. For every request:
  1. The card is validated (see card_validator.validate_card)
  2. A simulated provider decision is drawn: with probability
     tokencard.rejection_rate percent the request is refused
  3. The token is the SHA-256 hex digest of the card number, so the same
     card always maps to the same token
  4. The expiration is encrypted as "MM/YY" with the card cipher

Nothing is persisted here. The card vault (card_service) stores the
result; the raw card number and CVV are dropped when this call returns.
"""

import hashlib
import logging
import random
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import ProviderRejectedError
from checkout_api.schemas.card import TokenizationResult
from checkout_api.security import cipher
from checkout_api.services import preference_service
from checkout_api.services.card_validator import normalize_card_number, validate_card

logger = logging.getLogger(__name__)


def compute_token(card_number: str) -> str:
    """SHA-256 hex digest (64 lowercase chars) of the normalized card number."""
    return hashlib.sha256(normalize_card_number(card_number).encode("utf-8")).hexdigest()


def provider_rejects(rejection_rate: int) -> bool:
    """Draw a simulated provider decision; True means rejected."""
    return random.randint(1, 100) <= rejection_rate


async def tokenize(
    db: AsyncSession,
    client_id: uuid.UUID,
    card_number: str,
    cvv: str,
    expiration_month: str,
    expiration_year: str,
) -> TokenizationResult:
    """
    Validate a card and produce its token.

    Args:
        db: Database session (used only to read the rejection rate).
        client_id: The client the card will belong to.
        card_number: Raw card number, 13-16 digits.
        cvv: 3 or 4 digit security code. Checked, then discarded.
        expiration_month: "01".."12".
        expiration_year: Two-digit year.

    Returns:
        TokenizationResult with the token, last four digits and the
        encrypted expiration.

    Raises:
        InvalidCardDataError: If the card fails validation.
        ProviderRejectedError: If the simulated provider refuses the request.
        PreferenceMissingError / PreferenceNotIntegerError /
        PreferenceOutOfRangeError: If tokencard.rejection_rate is misconfigured.
    """
    validate_card(card_number, cvv, expiration_month, expiration_year)

    rejection_rate = await preference_service.get_rate(
        db, preference_service.TOKEN_REJECTION_RATE
    )
    if provider_rejects(rejection_rate):
        logger.info("Tokenization rejected by provider for client %s", client_id)
        raise ProviderRejectedError()

    digits = normalize_card_number(card_number)
    result = TokenizationResult(
        client_id=client_id,
        token=compute_token(digits),
        last_four_digits=digits[-4:],
        expiration_date_encrypted=cipher.encrypt(f"{expiration_month}/{expiration_year}"),
    )
    logger.info(
        "Tokenized card ending in %s for client %s",
        result.last_four_digits, client_id,
    )
    return result
