"""
Tokenization router — the provider-style tokenize endpoint.

Endpoints:
  POST /api/v1/tokenize — Validate a card and return its token (nothing stored)

Protected by the API key. The response carries the encrypted expiration,
never the plaintext, and never the card number or CVV.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.database import get_db
from checkout_api.dependencies import require_api_key
from checkout_api.schemas.card import CardDataRequest, TokenizationResult
from checkout_api.services import tokenization_service

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.post(
    "/tokenize",
    response_model=TokenizationResult,
    summary="Tokenize a card without storing it",
)
async def tokenize(
    request: CardDataRequest,
    db: AsyncSession = Depends(get_db),
):
    return await tokenization_service.tokenize(
        db,
        client_id=request.client_id,
        card_number=request.card_number,
        cvv=request.cvv,
        expiration_month=request.expiration_month,
        expiration_year=request.expiration_year,
    )
