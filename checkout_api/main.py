"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging — one basicConfig call for the whole process
  2. Lifespan manager — DB table creation, preference seeding, notifier workers
  3. CORS middleware — allows frontend origins to make cross-origin requests
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn checkout_api.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from checkout_api.config import settings
from checkout_api.database import AsyncSessionLocal, Base, engine
from checkout_api.exceptions import register_exception_handlers
from checkout_api.routers import auth, cards, orders, preferences, tokenization
from checkout_api.services import preference_service
from checkout_api.services.notification_service import notifier

import checkout_api.models  # noqa: F401  registers every table on Base.metadata

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all database tables if they don't exist, seeds the default
      runtime preferences, and starts the rejection notifier workers.

    Shutdown:
      Stops the notifier and disposes of the database engine.
    """
    # --- Startup ---
    # SQLite file databases need their directory to exist
    db_path = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and db_path and db_path != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        seeded = await preference_service.seed_defaults(session)
        await session.commit()
    if seeded:
        logger.info("Seeded %d default preference(s)", seeded)

    await notifier.start()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)

    yield

    # --- Shutdown ---
    await notifier.stop()
    await engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Checkout API with card tokenization, orders and payments",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(tokenization.router, prefix="/api/v1", tags=["Tokenization"])
app.include_router(cards.router, prefix="/api/v1/cards", tags=["Cards"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(preferences.router, prefix="/api/v1/preferences", tags=["Preferences"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
