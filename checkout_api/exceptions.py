"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  The service layer raises domain-specific errors (like OrderBlockedError)
  without importing HTTP concepts. The handler layer then translates these
  into proper HTTP responses, so service code stays testable without HTTP
  and error bodies are consistent across all endpoints.

Exception hierarchy:
    CheckoutAPIError (base)
    ├── InvalidCardDataError          — Luhn / CVV / expiration check failed
    │   └── InvalidExpirationFormatError — month or year is not numeric
    ├── ProviderRejectedError         — simulated tokenization provider said no
    ├── ClientNotFoundError / CardNotFoundError / OrderNotFoundError
    ├── AccessDeniedError             — entity exists but belongs to another client
    ├── DuplicateCardError            — token already stored in the vault
    ├── OrderBlockedError             — payment attempts exhausted
    ├── OrderAlreadyPaidError         — order already has a SUCCESS transaction
    ├── PaymentConflictError          — concurrent attempts kept colliding
    ├── DecryptionFailedError         — ciphertext could not be authenticated
    ├── PreferenceMissingError / PreferenceNotIntegerError / PreferenceOutOfRangeError
    ├── PreferenceNotFoundError / DuplicatePreferenceError — preference admin
    └── DuplicateEmailError / DuplicateUsernameError / InvalidCredentialsError

A rejected payment is deliberately NOT in this hierarchy. The payment
service commits the audit row and returns a rejected outcome; the orders
router turns that outcome into a 400 response.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class CheckoutAPIError(Exception):
    """Base exception for all Checkout API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Card data and tokenization
# ---------------------------------------------------------------------------

class InvalidCardDataError(CheckoutAPIError):
    """Raised when the card fails Luhn, CVV or expiration validation."""


class InvalidExpirationFormatError(InvalidCardDataError):
    """Raised when the expiration month or year is not numeric."""

    def __init__(self):
        super().__init__("Formato de fecha de expiración inválido.")


class ProviderRejectedError(CheckoutAPIError):
    """Raised when the simulated tokenization provider rejects the request."""

    def __init__(self):
        super().__init__("La generación del token ha sido rechazada por el proveedor.")


class DuplicateCardError(CheckoutAPIError):
    """Raised when a card with the same token is already in the vault."""

    def __init__(self, last_four: str):
        self.last_four = last_four
        super().__init__(f"Card ending in {last_four} is already tokenized")


class DecryptionFailedError(CheckoutAPIError):
    """
    Raised for every decryption failure.

    The message never says whether the payload was truncated, the tag did
    not authenticate or the key was wrong.
    """

    def __init__(self):
        super().__init__("Decryption failed")


# ---------------------------------------------------------------------------
# Lookups and ownership
# ---------------------------------------------------------------------------

class ClientNotFoundError(CheckoutAPIError):
    """Raised when a referenced client does not exist."""

    def __init__(self, client_id: uuid.UUID):
        self.client_id = client_id
        super().__init__(f"Client {client_id} not found")


class CardNotFoundError(CheckoutAPIError):
    """Raised when a referenced tokenized card does not exist."""

    def __init__(self, card_id: uuid.UUID):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found")


class OrderNotFoundError(CheckoutAPIError):
    """Raised when a referenced order does not exist."""

    def __init__(self, order_id: uuid.UUID):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class AccessDeniedError(CheckoutAPIError):
    """Raised when a client attempts to access a resource they don't own."""

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class OrderBlockedError(CheckoutAPIError):
    """Raised when an order no longer accepts payment attempts."""

    def __init__(self, order_id: uuid.UUID):
        self.order_id = order_id
        super().__init__(
            "El pedido ha sido bloqueado por sobrepasar la cantidad de intentos de pago."
        )


class OrderAlreadyPaidError(CheckoutAPIError):
    """Raised when an order already has a successful payment."""

    def __init__(self, order_id: uuid.UUID):
        self.order_id = order_id
        super().__init__(f"Order {order_id} has already been paid")


class PaymentConflictError(CheckoutAPIError):
    """Raised when concurrent attempts on one order keep claiming the same attempt number."""

    def __init__(self, order_id: uuid.UUID):
        self.order_id = order_id
        super().__init__(f"Concurrent payment attempts on order {order_id}, retry later")


# ---------------------------------------------------------------------------
# System preferences
# ---------------------------------------------------------------------------

class PreferenceMissingError(CheckoutAPIError):
    """Raised when a required runtime preference has not been configured."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Preference '{key}' is not configured")


class PreferenceNotIntegerError(CheckoutAPIError):
    """Raised when a preference read as an integer holds something else."""

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(f"Preference '{key}' is not a valid integer: {value!r}")


class PreferenceOutOfRangeError(CheckoutAPIError):
    """Raised when an integer preference falls outside its allowed bounds."""

    def __init__(self, key: str, value: int):
        self.key = key
        self.value = value
        super().__init__(f"Preference '{key}' is out of range: {value}")


class PreferenceNotFoundError(CheckoutAPIError):
    """Raised by the preference admin endpoints when the key does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Preference '{key}' not found")


class DuplicatePreferenceError(CheckoutAPIError):
    """Raised when creating a preference whose key already exists."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Preference '{key}' already exists")


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class DuplicateEmailError(CheckoutAPIError):
    """Raised when attempting to register with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class DuplicateUsernameError(CheckoutAPIError):
    """Raised when attempting to register with a username that's already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username {username} is already taken")


class InvalidCredentialsError(CheckoutAPIError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid username or password")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

# (status code, error_type) for every error that is safe to describe to the caller
_CLIENT_ERRORS: dict[type[CheckoutAPIError], tuple[int, str]] = {
    InvalidCardDataError: (400, "invalid_card_data"),
    ProviderRejectedError: (400, "provider_rejected"),
    OrderBlockedError: (400, "order_blocked"),
    InvalidCredentialsError: (401, "invalid_credentials"),
    AccessDeniedError: (403, "access_denied"),
    ClientNotFoundError: (404, "client_not_found"),
    CardNotFoundError: (404, "card_not_found"),
    OrderNotFoundError: (404, "order_not_found"),
    PreferenceNotFoundError: (404, "preference_not_found"),
    DuplicateCardError: (409, "duplicate_card"),
    OrderAlreadyPaidError: (409, "order_already_paid"),
    PaymentConflictError: (409, "payment_conflict"),
    DuplicatePreferenceError: (409, "duplicate_preference"),
    DuplicateEmailError: (409, "duplicate_email"),
    DuplicateUsernameError: (409, "duplicate_username"),
}

# Operational failures: logged server-side, surfaced as an opaque 500
_OPERATIONAL_ERRORS = (
    DecryptionFailedError,
    PreferenceMissingError,
    PreferenceNotIntegerError,
    PreferenceOutOfRangeError,
)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and
    consistent JSON response format: {"detail": "...", "error_type": "..."}

    Subclasses inherit their parent's mapping (InvalidExpirationFormatError
    is reported as invalid_card_data), because Starlette resolves handlers
    along the exception's MRO.

    This is called once during app startup in main.py.
    """
    def _make_handler(status_code: int, error_type: str):
        async def handler(request: Request, exc: CheckoutAPIError) -> JSONResponse:
            return JSONResponse(
                status_code=status_code,
                content={"detail": exc.detail, "error_type": error_type},
            )
        return handler

    for exc_class, (status_code, error_type) in _CLIENT_ERRORS.items():
        app.add_exception_handler(exc_class, _make_handler(status_code, error_type))

    async def operational_error_handler(
        request: Request, exc: CheckoutAPIError
    ) -> JSONResponse:
        logger.error(
            "Operational error on %s %s: %s",
            request.method, request.url.path, exc.detail,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal_error"},
        )

    for exc_class in _OPERATIONAL_ERRORS:
        app.add_exception_handler(exc_class, operational_error_handler)
