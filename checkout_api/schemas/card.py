"""
Pydantic schemas for tokenization and card endpoints.

The card number and CVV only ever appear in CardDataRequest. They are
never returned, stored or logged. Responses expose the token, the last
four digits and timestamps; the encrypted expiration is returned only by
the provider-style /tokenize endpoint, and its plaintext never leaves the
service.

JSON field names are camelCase (cardNumber, lastFourDigits); snake_case
is accepted on input too.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class CardDataRequest(BaseModel):
    """
    Request body for POST /api/v1/tokenize and POST /api/v1/cards.

    The regexes are a first filter at the edge; the tokenization service
    validates again (Luhn, CVV, expiration) before doing anything else.
    """
    client_id: uuid.UUID
    card_number: str = Field(pattern=r"^[0-9]{13,16}$")
    cvv: str = Field(pattern=r"^[0-9]{3,4}$")
    expiration_month: str = Field(pattern=r"^(0[1-9]|1[0-2])$")
    expiration_year: str = Field(pattern=r"^[0-9]{2}$")

    model_config = CAMEL_CONFIG


class TokenizationResult(BaseModel):
    """Output of the tokenization service — everything the vault needs to store a card."""
    client_id: uuid.UUID
    token: str
    last_four_digits: str
    expiration_date_encrypted: str

    model_config = CAMEL_CONFIG


class TokenizeResponse(BaseModel):
    """Response body for POST /api/v1/cards."""
    card_id: uuid.UUID
    token: str
    last_four_digits: str
    message: str = "Tarjeta tokenizada y almacenada con éxito."

    model_config = CAMEL_CONFIG


class CardView(BaseModel):
    """Public representation of a stored card (no ciphertext, no card number)."""
    id: uuid.UUID
    client_id: uuid.UUID
    token: str
    last_four_digits: str
    created_at: datetime
    updated_at: datetime

    model_config = {**CAMEL_CONFIG, "from_attributes": True}
