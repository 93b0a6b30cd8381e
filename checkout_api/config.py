"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This pattern keeps secrets out of source code — the .env file is
gitignored and only the variable names are documented here.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Static settings vs. runtime preferences:
  Values here are fixed for the lifetime of the process. Business knobs that
  operators tune while the service is running (rejection rates, max payment
  attempts) live in the system_preferences table instead and are read on
  every call — see services/preference_service.py.

Usage:
    from checkout_api.config import settings
    print(settings.SECRET_KEY)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Checkout API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
      - CARD_ENCRYPTION_KEY: Base64-encoded 32-byte AES-256 key
      - API_KEY: Shared secret for the tokenization and preference endpoints
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Checkout API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for MVP; swap to PostgreSQL connection string for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/checkout.db"

    # --- Authentication ---
    # REQUIRED: no default, a real secret must be set
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Card Encryption ---
    # REQUIRED: AES-256 key, Base64-encoded (must decode to exactly 32 bytes)
    # Generate with: python -c "import base64, os; print(base64.b64encode(os.urandom(32)).decode())"
    CARD_ENCRYPTION_KEY: str

    # --- Service-to-service API key ---
    # REQUIRED: checked on /api/v1/tokenize, POST /api/v1/cards and /api/v1/preferences
    API_KEY: str
    API_KEY_HEADER: str = "X-API-KEY"

    # --- Rejection notifications ---
    NOTIFIER_QUEUE_SIZE: int = 100
    NOTIFIER_WORKERS: int = 2

    # "log" writes notices to the application log, "smtp" sends real mail
    MAIL_BACKEND: str = "log"
    MAIL_FROM: str = "no-reply@checkout.local"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True

    # --- CORS ---
    # Origins allowed to make cross-origin requests (frontend URLs)
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
