"""
Pydantic schemas for authentication endpoints (signup and login).

Pydantic validates incoming data automatically — if a required field is
missing or the wrong type, FastAPI returns a 422 error before our code
even runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class ClientSignupRequest(BaseModel):
    """Request body for POST /auth/signup."""
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr                                # Validates email format
    password: str = Field(min_length=8)            # Minimum 8 characters
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)


class ClientLoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Response body for successful login — contains the JWT."""
    token: str
    token_type: str = "bearer"


class SignupResponse(BaseModel):
    """Response body for successful signup — client info + JWT."""
    client_id: uuid.UUID
    username: str
    email: str
    token: str
    token_type: str = "bearer"
