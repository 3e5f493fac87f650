"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything with a lifetime longer than a request is built
HERE, once, from validated Settings:
- CredentialHasher (validates the bcrypt cost, owns the hash pool)
- TokenService (validates the signing secret)
- the identity store provider (SQLAlchemy engine, or in-memory)

Any configuration problem raises ConfigurationError before the app
exists, so a misconfigured process never serves a request.

Run with: uvicorn spacehub.main:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spacehub import __version__
from spacehub.api import api_router
from spacehub.api.exception_handlers import install_exception_handlers
from spacehub.auth.jwt import TokenService
from spacehub.auth.password import CredentialHasher
from spacehub.config import Settings, load_settings
from spacehub.log import configure_logging
from spacehub.middleware.request_id import RequestIdMiddleware
from spacehub.middleware.security import SecurityHeadersMiddleware
from spacehub.store.base import StoreProvider

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "spacehub.starting",
        version=__version__,
        environment=settings.environment,
        store_backend=settings.store_backend,
        port=settings.port,
    )

    yield

    logger.info("spacehub.shutdown")
    app.state.hasher.shutdown()
    if app.state.engine is not None:
        await app.state.engine.dispose()


def build_store_provider(settings: Settings):
    """Return (store_provider, engine-or-None) for the configured backend."""
    if settings.store_backend == "memory":
        from spacehub.store.memory import InMemoryIdentityStore

        return InMemoryIdentityStore().open, None

    from spacehub.db.engine import build_engine, build_session_factory
    from spacehub.store.sqlalchemy_store import sqlalchemy_store_provider

    engine = build_engine(settings)
    return sqlalchemy_store_provider(build_session_factory(engine)), engine


def create_app(
    settings: Optional[Settings] = None,
    *,
    store_provider: Optional[StoreProvider] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or load_settings()
    configure_logging(settings)

    hasher = CredentialHasher.from_settings(settings)
    tokens = TokenService.from_settings(settings)
    engine = None
    if store_provider is None:
        store_provider, engine = build_store_provider(settings)

    app = FastAPI(
        title="SpaceHub Identity API",
        description="Accounts, credentials and access control for SpaceHub",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hasher = hasher
    app.state.tokens = tokens
    app.state.store_provider = store_provider
    app.state.engine = engine

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    install_exception_handlers(app)
    app.include_router(api_router)

    return app
