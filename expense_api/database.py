"""Database configuration and session management."""

import logging
from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


class Database:
    """Explicitly owned handle on the engine and its connection pool.

    Nothing connects until ``open()`` is called; ``close()`` disposes the pool.
    The application factory creates one and the lifespan drives it.
    """

    def __init__(self, url: str, **engine_options: Any):
        self.url = url
        self.engine_options = engine_options
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        options = dict(self.engine_options)
        if self.url.startswith("sqlite"):
            options.setdefault("connect_args", {"check_same_thread": False})
        else:
            options.setdefault("pool_pre_ping", True)
            options.setdefault("pool_size", 5)
            options.setdefault("max_overflow", 10)
            options.setdefault("pool_timeout", 30)
        self._engine = create_engine(self.url, **options)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info(f"Database opened ({self._engine.url.render_as_string(hide_password=True)})")

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database closed")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def create_all(self) -> None:
        """Create all tables known to the models."""
        # Import all models here so they are registered with Base.metadata
        from expense_api import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        """Return True when a trivial query round-trips."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError) as e:
            logger.error(f"Database health check failed: {e}")
            return False


def get_database(request: Request) -> Database:
    """Dependency that provides the application's database handle."""
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
