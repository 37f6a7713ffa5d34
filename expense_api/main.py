"""FastAPI application entry point."""

import asyncio
import logging
import os
import signal
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from expense_api import __version__
from expense_api.api import auth, health, transactions
from expense_api.api.error_handlers import register_error_handlers
from expense_api.config import Settings, get_settings
from expense_api.database import Database
from expense_api.middleware import log_requests, rate_limit
from expense_api.observability import setup_logging
from expense_api.services.auth import PasswordHasher
from expense_api.services.rate_limiter import (
    FixedWindowRateLimiter,
    MemoryWindowStore,
    RedisWindowStore,
)
from expense_api.services.tokens import TokenService

logger = logging.getLogger(__name__)


def handle_unhandled_async_error(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Loop exception handler: log the escaped failure and shut the process down."""
    exception = context.get("exception")
    logger.critical(
        f"Unhandled async error: {context.get('message', 'no message')}",
        exc_info=exception,
    )
    os.kill(os.getpid(), signal.SIGTERM)


def _build_rate_limiters(settings: Settings) -> tuple[FixedWindowRateLimiter, FixedWindowRateLimiter]:
    if settings.redis_url:
        general_store = auth_store = RedisWindowStore.from_url(settings.redis_url)
    else:
        general_store, auth_store = MemoryWindowStore(), MemoryWindowStore()
    general = FixedWindowRateLimiter(
        settings.rate_limit_max_requests,
        settings.rate_limit_window_seconds,
        store=general_store,
        name="general",
    )
    auth_limiter = FixedWindowRateLimiter(
        settings.auth_rate_limit_max_requests,
        settings.rate_limit_window_seconds,
        store=auth_store,
        name="auth",
    )
    return general, auth_limiter


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the application. The database handle is opened and closed by the lifespan."""
    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        setup_logging(settings.log_level, settings.log_format)
        asyncio.get_running_loop().set_exception_handler(handle_unhandled_async_error)
        database.open()
        logger.info(f"Expense API {__version__} started ({settings.environment})")
        yield
        store = app.state.rate_limiter.store
        if isinstance(store, RedisWindowStore):
            await store.close()
        database.close()
        logger.info("Expense API stopped")

    app = FastAPI(
        title="Expense Tracker API",
        description="Personal finance tracking: income and expense transactions with summaries",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    app.state.settings = settings
    app.state.database = database
    app.state.started_at = time.monotonic()
    app.state.token_service = TokenService.from_settings(settings)
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.rate_limiter, app.state.auth_rate_limiter = _build_rate_limiters(settings)

    register_error_handlers(app, expose_internal_errors=not settings.is_production)

    # Added first so it runs innermost, after request logging
    app.middleware("http")(rate_limit)
    app.middleware("http")(log_requests)

    # CORS middleware for development
    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Register routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(transactions.router)

    return app


def run() -> None:
    """Run the API with uvicorn, creating tables first."""
    import uvicorn

    settings = get_settings()
    database = Database(settings.database_url)
    database.open()
    database.create_all()
    database.close()

    uvicorn.run(
        create_app(settings, database),
        host=os.getenv("HOST", "0.0.0.0"),  # noqa: S104
        port=int(os.getenv("PORT", "8888")),
        log_config=None,
    )


app = create_app()


if __name__ == "__main__":
    run()
