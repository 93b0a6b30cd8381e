"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request

Architecture note:
  We use async SQLAlchemy (with aiosqlite for SQLite) so the API can handle
  concurrent requests without blocking. When migrating to PostgreSQL, only
  the DATABASE_URL needs to change (to use asyncpg driver).

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits
  on success, commits on domain errors, and rolls back on anything else.
  The payment service additionally commits on its own before returning a
  rejected outcome, so audit rows never depend on how the request ends.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from checkout_api.config import settings
from checkout_api.exceptions import CheckoutAPIError


# Create the async engine.
# echo=True in debug mode logs all SQL statements.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Session factory: creates new AsyncSession instances.
# expire_on_commit=False prevents lazy-load errors after commit;
# the payment service commits mid-request and keeps using its objects.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class, which provides:
      - Metadata tracking for table creation and migrations
      - Common declarative mapping features
    """
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    The session is automatically committed on success and rolled back
    on any unexpected exception, then closed when the request completes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except CheckoutAPIError:
            # Business outcomes (e.g., OrderBlockedError): commit the session
            # so bookkeeping such as the is_blocked flip is persisted.
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
