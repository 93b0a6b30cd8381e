"""
Authentication router — signup and login endpoints.

These are the only public (unauthenticated) endpoints in the API besides
/health. Storefront endpoints require a valid JWT; provider-style
endpoints require the API key.

Endpoints:
  POST /auth/signup  — Register a new client and get a token
  POST /auth/login   — Authenticate and get a token

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.database import get_db
from checkout_api.schemas.auth import (
    ClientSignupRequest,
    ClientLoginRequest,
    TokenResponse,
    SignupResponse,
)
from checkout_api.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new client",
)
async def signup(
    request: ClientSignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new client. Returns a JWT token so the client is
    immediately logged in after signup.

    - **username**: 3-100 characters, unique
    - **email**: Must be a valid email format and not already registered
    - **password**: Minimum 8 characters
    """
    client, token = await auth_service.signup(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
    )

    return SignupResponse(
        client_id=client.id,
        username=client.username,
        email=client.email,
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: ClientLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Include the returned token in the Authorization header of later requests:

        Authorization: Bearer <token>
    """
    _, token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )

    return TokenResponse(token=token)
