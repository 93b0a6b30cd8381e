"""
FastAPI dependencies for authentication and shared services.

Two ways in:
  - get_current_client (JWT bearer -> Client): storefront endpoints. Every
    query downstream is scoped to this client's id.
  - require_api_key (X-API-KEY header): provider-style endpoints
    (tokenization, card storage, preferences) that are called by other
    services rather than by a logged-in shopper.

get_notifier hands the application-wide RejectionNotifier to the orders
router; tests override it with a recording fake.
"""

import secrets
import uuid

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.config import settings
from checkout_api.database import get_db
from checkout_api.models.client import Client
from checkout_api.security import decode_access_token
from checkout_api.services.notification_service import RejectionNotifier, notifier


# OAuth2PasswordBearer tells FastAPI where to look for the token:
# the "Authorization: Bearer <token>" header. The tokenUrl points to
# the login endpoint (used by Swagger UI's "Authorize" button).
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

api_key_header = APIKeyHeader(name=settings.API_KEY_HEADER, auto_error=False)


async def get_current_client(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Client:
    """
    Extract and validate the JWT token, then return the corresponding Client.

    Raises:
        HTTPException 401: If the token is invalid or the client doesn't
            exist or is deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        client_id_str: str | None = payload.get("sub")
        if client_id_str is None:
            raise credentials_exception
        client_id = uuid.UUID(client_id_str)
    except (JWTError, ValueError):
        raise credentials_exception

    client = await db.get(Client, client_id)
    if client is None or not client.is_active:
        raise credentials_exception

    return client


async def require_api_key(api_key: str | None = Security(api_key_header)) -> None:
    """
    Require the shared service API key.

    Raises:
        HTTPException 401: If the header is missing or doesn't match.
    """
    if api_key is None or not secrets.compare_digest(
        api_key.encode("utf-8"), settings.API_KEY.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )


def get_notifier() -> RejectionNotifier:
    return notifier
