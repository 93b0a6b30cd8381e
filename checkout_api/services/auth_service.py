"""
Authentication service — signup and login business logic.

Signup flow:
  1. Check that the username and email are not already taken
  2. Hash the password with Argon2id
  3. Create the Client
  4. Return a JWT token so the client is immediately logged in

Login flow:
  1. Look up the client by username
  2. Verify the password against the stored hash
  3. Return a JWT token

Login returns the same error for "wrong password", "unknown username" and
"deactivated client" to prevent user enumeration.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.exceptions import (
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
)
from checkout_api.models.client import Client
from checkout_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


async def signup(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
) -> tuple[Client, str]:
    """
    Register a new client.

    Returns:
        Tuple of (Client instance, JWT token string).

    Raises:
        DuplicateUsernameError: If the username is already taken.
        DuplicateEmailError: If the email is already registered.
    """
    result = await db.execute(select(Client.id).where(Client.username == username))
    if result.scalar_one_or_none() is not None:
        raise DuplicateUsernameError(username)

    result = await db.execute(select(Client.id).where(Client.email == email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateEmailError(email)

    client = Client(
        username=username,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
    )
    db.add(client)
    await db.flush()

    logger.info("Registered client %s (%s)", client.id, username)

    # "sub" (subject) is the standard claim for identity
    token = create_access_token(data={"sub": str(client.id)})
    return client, token


async def login(
    db: AsyncSession,
    username: str,
    password: str,
) -> tuple[Client, str]:
    """
    Authenticate a client and return a JWT token.

    Raises:
        InvalidCredentialsError: If the username is unknown, the password
            is wrong or the client is deactivated.
    """
    result = await db.execute(select(Client).where(Client.username == username))
    client = result.scalar_one_or_none()

    # Same error for every case, so usernames cannot be enumerated
    if client is None:
        raise InvalidCredentialsError()

    if not verify_password(password, client.hashed_password):
        raise InvalidCredentialsError()

    if not client.is_active:
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(client.id)})
    return client, token
