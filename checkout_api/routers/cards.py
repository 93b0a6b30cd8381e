"""
Cards router — storing and reading tokenized cards.

Endpoints:
  POST /api/v1/cards            — Tokenize a card and store it (API key)
  GET  /api/v1/cards            — List the authenticated client's cards (JWT)
  GET  /api/v1/cards/{card_id}  — Get one of the client's cards (JWT)

Storing is a provider-style call: the owning client comes from the request
body, and the caller authenticates with the API key. Reading is scoped to
the logged-in client. Responses never contain the card number, the CVV or
the encrypted expiration.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.database import get_db
from checkout_api.dependencies import get_current_client, require_api_key
from checkout_api.models.client import Client
from checkout_api.schemas.card import CardDataRequest, CardView, TokenizeResponse
from checkout_api.services import card_service

router = APIRouter()


@router.post(
    "",
    response_model=TokenizeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Tokenize and store a card",
    dependencies=[Depends(require_api_key)],
)
async def create_card(
    request: CardDataRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Tokenize a card and store it in the vault for request.client_id.

    - 400 if the card fails validation or the provider rejects it
    - 404 if the client doesn't exist
    - 409 if the same card is already stored
    """
    card = await card_service.tokenize_and_store(
        db,
        client_id=request.client_id,
        card_number=request.card_number,
        cvv=request.cvv,
        expiration_month=request.expiration_month,
        expiration_year=request.expiration_year,
    )
    return TokenizeResponse(
        card_id=card.id,
        token=card.token,
        last_four_digits=card.last_four_digits,
    )


@router.get(
    "",
    response_model=list[CardView],
    summary="List my cards",
)
async def list_cards(
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.list_by_client(db, client.id)


@router.get(
    "/{card_id}",
    response_model=CardView,
    summary="Get one of my cards",
)
async def get_card(
    card_id: uuid.UUID,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.find_for_client(db, card_id, client.id)
