"""
Test fixtures for the Checkout API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test,
    with the default preferences seeded
  - client: Async HTTP test client (unauthenticated)
  - api_headers: Headers carrying the service API key
  - alice / bob: Two registered clients, each with their own JWT headers
  - set_preference: Change a runtime preference mid-test
  - recording_notifier: Captures rejection notices instead of sending them
  - store_card / create_order: Shortcuts through the real HTTP endpoints

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database — no state leaks between tests.
  - get_db is overridden with a copy of the production session lifecycle
    (commit on domain errors, rollback on anything else), so audit rows
    behave exactly as they do in production.
  - Both rejection rates are set to 0 in every fresh database. Tests that
    need a rejection set the rate to 100, which always rejects.
  - Each user passes their own Authorization header per request, so two
    users can share one HTTP client without clobbering each other.
"""

import os

# Required settings must exist before checkout_api.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CARD_ENCRYPTION_KEY", "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY=")
os.environ.setdefault("API_KEY", "test-api-key")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from checkout_api.config import settings
from checkout_api.database import Base, get_db
from checkout_api.dependencies import get_notifier
from checkout_api.exceptions import CheckoutAPIError
from checkout_api.main import app
from checkout_api.models.system_preference import SystemPreference
from checkout_api.services import preference_service


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

VALID_CARD = "4539148803436467"
OTHER_VALID_CARD = "4111111111111111"
FUTURE_YEAR = "49"


class RecordingNotifier:
    """Stands in for RejectionNotifier; keeps every notice it is handed."""

    def __init__(self):
        self.notices = []

    def notify_rejection(self, notice):
        self.notices.append(notice)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables and default preferences."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await preference_service.seed_defaults(session)
        # Never reject unless a test asks for it
        for key in (preference_service.TOKEN_REJECTION_RATE, preference_service.PAYMENT_REJECTION_RATE):
            await preference_service.update_preference(session, key, "0", "INTEGER")
        await session.commit()

    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def set_preference(session_factory):
    """Return an async function that creates or updates a preference."""

    async def _set(key: str, value: str, data_type: str = "INTEGER"):
        async with session_factory() as session:
            result = await session.execute(
                select(SystemPreference).where(SystemPreference.pref_key == key)
            )
            preference = result.scalar_one_or_none()
            if preference is None:
                session.add(SystemPreference(pref_key=key, pref_value=value, data_type=data_type))
            else:
                preference.pref_value = value
                preference.data_type = data_type
            await session.commit()

    return _set


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(session_factory, recording_notifier):
    """
    Async HTTP test client with the test database and notifier injected.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except CheckoutAPIError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: recording_notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {settings.API_KEY_HEADER: settings.API_KEY}


async def _signup(client, username: str, first_name: str, last_name: str) -> dict:
    response = await client.post(
        "/auth/signup",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "SecurePass123!",
            "first_name": first_name,
            "last_name": last_name,
        },
    )
    assert response.status_code == 201, f"Signup failed: {response.text}"
    data = response.json()
    return {
        "id": data["client_id"],
        "email": data["email"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
    }


@pytest_asyncio.fixture
async def alice(client):
    """A registered client with JWT headers."""
    return await _signup(client, "alice", "Alice", "Chen")


@pytest_asyncio.fixture
async def bob(client):
    """A second registered client for cross-client tests."""
    return await _signup(client, "bob", "Bob", "Martinez")


@pytest_asyncio.fixture
async def store_card(client, api_headers):
    """Return an async function that tokenizes and stores a card via the API."""

    async def _store(owner: dict, card_number: str = VALID_CARD, **overrides):
        body = {
            "clientId": owner["id"],
            "cardNumber": card_number,
            "cvv": "123",
            "expirationMonth": "12",
            "expirationYear": FUTURE_YEAR,
            **overrides,
        }
        return await client.post("/api/v1/cards", json=body, headers=api_headers)

    return _store


@pytest_asyncio.fixture
async def create_order(client, store_card):
    """
    Return an async function that opens an order for owner.

    Without card_id, a new card is stored first (card numbers are globally
    unique, so pass a different card_number for each new card).
    """

    async def _create(
        owner: dict,
        total_amount_cents: int = 4200,
        card_number: str = VALID_CARD,
        card_id: str | None = None,
    ):
        if card_id is None:
            card = await store_card(owner, card_number)
            assert card.status_code == 201, card.text
            card_id = card.json()["cardId"]
        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": card_id,
                "deliveryAddress": "Calle 1 #2-3",
                "totalAmountCents": total_amount_cents,
            },
            headers=owner["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
