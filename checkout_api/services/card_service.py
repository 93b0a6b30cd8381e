"""
Card service — the vault of tokenized cards.

Storing a card:
  1. The card data goes through tokenization_service.tokenize()
  2. The owning client must exist
  3. The row is inserted; the UNIQUE index on token rejects a card that is
     already in the vault (for any client), which surfaces as
     DuplicateCardError

Reading cards is always scoped to the authenticated client. A card that
exists but belongs to someone else raises AccessDeniedError rather than
pretending it does not exist; this mirrors how orders and accounts are
checked elsewhere in the API.

Only the token, the last four digits and the encrypted expiration are
stored. The card number and CVV never reach this module's database writes.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import (
    AccessDeniedError,
    CardNotFoundError,
    ClientNotFoundError,
    DuplicateCardError,
)
from checkout_api.models.client import Client
from checkout_api.models.tokenized_card import TokenizedCard
from checkout_api.schemas.card import TokenizationResult
from checkout_api.services import tokenization_service

logger = logging.getLogger(__name__)


async def store(db: AsyncSession, result: TokenizationResult) -> TokenizedCard:
    """
    Persist a tokenization result for its client.

    Raises:
        ClientNotFoundError: If result.client_id does not exist.
        DuplicateCardError: If a card with the same token is already stored.
    """
    client = await db.get(Client, result.client_id)
    if client is None:
        raise ClientNotFoundError(result.client_id)

    card = TokenizedCard(
        client_id=result.client_id,
        token=result.token,
        last_four_digits=result.last_four_digits,
        expiration_encrypted=result.expiration_date_encrypted,
    )
    db.add(card)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info(
            "Duplicate card ending in %s rejected for client %s",
            result.last_four_digits, result.client_id,
        )
        raise DuplicateCardError(result.last_four_digits) from None

    logger.info("Stored card %s for client %s", card.id, card.client_id)
    return card


async def tokenize_and_store(
    db: AsyncSession,
    client_id: uuid.UUID,
    card_number: str,
    cvv: str,
    expiration_month: str,
    expiration_year: str,
) -> TokenizedCard:
    """
    Tokenize a card and store it in the vault in one step.

    Raises:
        InvalidCardDataError, ProviderRejectedError: From tokenization.
        ClientNotFoundError, DuplicateCardError: From the vault.
    """
    result = await tokenization_service.tokenize(
        db,
        client_id=client_id,
        card_number=card_number,
        cvv=cvv,
        expiration_month=expiration_month,
        expiration_year=expiration_year,
    )
    return await store(db, result)


async def list_by_client(db: AsyncSession, client_id: uuid.UUID) -> list[TokenizedCard]:
    """List the client's cards, oldest first."""
    result = await db.execute(
        select(TokenizedCard)
        .where(TokenizedCard.client_id == client_id)
        .order_by(TokenizedCard.created_at)
    )
    return list(result.scalars().all())


async def find_for_client(
    db: AsyncSession,
    card_id: uuid.UUID,
    client_id: uuid.UUID,
) -> TokenizedCard:
    """
    Get a single card, verifying ownership.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        AccessDeniedError: If the card belongs to another client.
    """
    card = await db.get(TokenizedCard, card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    if card.client_id != client_id:
        raise AccessDeniedError("You do not have access to this card")
    return card
