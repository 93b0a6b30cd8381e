"""
Security utilities: password hashing, JWT tokens, and AES-GCM encryption.

This module centralizes all cryptographic operations so they're easy to
audit and update. Three concerns are handled here:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - We use passlib's CryptContext for safe, high-level Argon2 operations

2. JWT TOKENS (JSON Web Tokens)
   - After login, the client receives a signed JWT containing their client ID
   - The token is signed with SECRET_KEY using HS256 (HMAC-SHA256)
   - Tokens expire after ACCESS_TOKEN_EXPIRE_MINUTES (default: 30 min)

3. AES-256-GCM ENCRYPTION (SymmetricCipher)
   - Used for encrypting the expiration date of tokenized cards at rest
   - GCM is authenticated: tampering with the stored value makes decryption
     fail instead of returning garbage
   - A fresh 96-bit IV is drawn for every call and stored in front of the
     ciphertext, so encrypting the same value twice gives different output
   - Wire form: Base64( IV || ciphertext || 128-bit tag )

Enterprise note:
  In a production environment, you'd use a Hardware Security Module (HSM)
  or a secrets manager (AWS KMS, HashiCorp Vault) instead of env-var keys.
  This implementation is structured to make that migration straightforward.
"""

import base64
import binascii
import os
from datetime import datetime, timedelta, timezone

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from jose import jwt
from passlib.context import CryptContext

from checkout_api.config import settings
from checkout_api.exceptions import DecryptionFailedError


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# CryptContext manages hashing schemes. "argon2" is the active scheme;
# "deprecated='auto'" lets old hashes keep verifying if the scheme changes.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Args:
        plain_password: The client's raw password input.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored Argon2 hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    The token payload contains:
      - "sub": The subject (client ID as string) — standard JWT claim
      - "exp": Expiration timestamp — after this, the token is rejected

    Args:
        data: Dictionary of claims to encode (must include "sub").
        expires_delta: Optional custom expiration time. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.

    Returns:
        An encoded JWT string.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ---------------------------------------------------------------------------
# 3. AES-256-GCM Encryption (for card data at rest)
# ---------------------------------------------------------------------------


class SymmetricCipher:
    """
    AES-256 in GCM mode over short UTF-8 strings.

    The key is fixed for the lifetime of the instance and shared freely
    between requests; the cipher holds no other state.
    """

    KEY_LENGTH = 32   # bytes (256 bits)
    IV_LENGTH = 12    # bytes (96 bits), the GCM recommended nonce size
    TAG_LENGTH = 16   # bytes (128 bits), appended by AESGCM.encrypt

    def __init__(self, key: bytes):
        if len(key) != self.KEY_LENGTH:
            raise ValueError(
                f"AES key must be {self.KEY_LENGTH} bytes (256 bits), got {len(key)}"
            )
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: str) -> "SymmetricCipher":
        """Build a cipher from a Base64-encoded key, as stored in configuration."""
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("AES key is not valid Base64") from exc
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string value.

        Returns:
            Base64 text of IV || ciphertext || tag, suitable for a text column.
        """
        iv = os.urandom(self.IV_LENGTH)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        return base64.b64encode(iv + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a value produced by encrypt().

        Raises:
            DecryptionFailedError: For every failure — malformed Base64, a
                payload too short to hold IV and tag, a tag that does not
                authenticate, or a different key.
        """
        try:
            payload = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError):
            raise DecryptionFailedError() from None

        if len(payload) < self.IV_LENGTH + self.TAG_LENGTH:
            raise DecryptionFailedError()

        iv, sealed = payload[:self.IV_LENGTH], payload[self.IV_LENGTH:]
        try:
            return self._aesgcm.decrypt(iv, sealed, None).decode("utf-8")
        except (InvalidTag, UnicodeDecodeError):
            raise DecryptionFailedError() from None


# Process-wide cipher. A key that does not decode to 32 bytes raises here,
# at import time, so the application refuses to start.
cipher = SymmetricCipher.from_base64(settings.CARD_ENCRYPTION_KEY)
