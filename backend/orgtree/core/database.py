"""Database engine and session management."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from orgtree.core.config import get_settings
from orgtree.core.structured_logging import log_json

settings = get_settings()
logger = logging.getLogger(__name__)

MAX_LOGGED_STATEMENT_LENGTH = 2000


def install_slow_query_logging(engine: AsyncEngine, threshold_ms: float) -> None:
    """Log statements slower than ``threshold_ms`` as ``slow_query`` events."""
    if threshold_ms <= 0:
        return

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return

        duration_ms = (time.perf_counter() - start) * 1000
        if duration_ms < threshold_ms:
            return

        stmt = str(statement)
        if len(stmt) > MAX_LOGGED_STATEMENT_LENGTH:
            stmt = stmt[: MAX_LOGGED_STATEMENT_LENGTH - 3] + "..."

        log_json(
            logger,
            logging.WARNING,
            "slow_query",
            duration_ms=round(duration_ms, 2),
            statement=stmt,
        )


# NullPool for test databases to avoid connections leaking across event loops
engine = create_async_engine(
    settings.async_database_url,
    echo=False,
    poolclass=NullPool if "test" in settings.database_url else None,
)
install_slow_query_logging(engine, settings.slow_query_ms)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session.

    Commits when the request handler returns and rolls back on any error, so
    a rejected hierarchy change never leaves partial writes behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
