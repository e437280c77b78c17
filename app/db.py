"""
Database configuration with SQLAlchemy 2.0 async support.
"""

import asyncio
import logging
import ssl
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.settings import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _get_connect_args(settings: Settings) -> dict:
    """Get connection arguments, including SSL for managed databases."""
    if settings.is_sqlite:
        return {"check_same_thread": False}

    connect_args = {}

    # Skip SSL for local development (localhost, 127.0.0.1, or Docker service names)
    db_url = settings.database_url
    local_hosts = ["localhost", "127.0.0.1", "@db:", "@db/", "@postgres:", "@postgres/"]
    is_local = any(host in db_url for host in local_hosts)

    if not is_local:
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE  # Managed DBs often use self-signed certs
        connect_args["ssl"] = ssl_context
        logger.info("SSL enabled for database connection")

    return connect_args


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _masked_url(db_url: str) -> str:
    try:
        parsed = urlparse(db_url)
        if parsed.password:
            return db_url.replace(parsed.password, "***", 1)
    except ValueError:
        pass
    return db_url


class Database:
    """Owns the async engine and session factory for one application."""

    def __init__(self, settings: Settings):
        self.settings = settings

        engine_kwargs = {
            "echo": settings.debug,
            "connect_args": _get_connect_args(settings),
        }
        if settings.is_sqlite:
            # One shared connection so in-memory databases survive across sessions
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,  # Verify connections before using
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)
        if settings.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Transactional session: commits on success, rolls back on error."""
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init(self) -> None:
        """Check connectivity (with retries) and create tables if configured."""
        retries = max(1, self.settings.database_connect_retries)
        delay = self.settings.database_retry_delay_seconds

        logger.info("Connecting to database: %s", _masked_url(self.settings.database_url))

        for attempt in range(retries):
            try:
                async with self.engine.begin() as conn:
                    if self.settings.database_auto_create:
                        # Import all models to ensure they're registered
                        from app.models import game, group, invitation, user  # noqa: F401
                        await conn.run_sync(Base.metadata.create_all)
                        logger.info("Database tables initialized")
                return
            except Exception as e:
                if attempt < retries - 1:
                    logger.warning(
                        "Database connection attempt %d/%d failed: %s; retrying in %ss",
                        attempt + 1, retries, e, delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error("Database connection failed after %d attempts", retries)
                    raise

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides the request's database session.

    The whole request runs in one transaction: it is committed when the
    handler returns and rolled back if anything raises.
    """
    database: Database = request.app.state.context.database
    async with database.session() as session:
        yield session


async def insert_ignore(
    session: AsyncSession,
    model: type[Base],
    rows: list[dict],
    index_elements: list[str],
) -> None:
    """INSERT ... ON CONFLICT DO NOTHING for PostgreSQL and SQLite.

    Rows that collide with an existing key are skipped, so concurrent or
    repeated inserts of the same key never raise.
    """
    if not rows:
        return

    if session.bind.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert

    stmt = insert(model).values(rows).on_conflict_do_nothing(index_elements=index_elements)
    await session.execute(stmt)
