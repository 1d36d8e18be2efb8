"""
Postgres connection pool for the user store.

Only opened when USER_STORE_BACKEND=postgres; the in-memory backend never
touches this module's pool.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

CLOSE_TIMEOUT_SECONDS = 30.0


class DatabasePoolManager:
    def __init__(self, conninfo: str | None = None):
        self.conninfo = conninfo
        self.pool: AsyncConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self.pool is not None

    async def initialize(self) -> None:
        """Open the pool and wait until min_size connections are ready."""
        if self.pool is not None:
            return

        pool_config = settings.get_db_pool_config()
        conninfo = self.conninfo or settings.require_database_url()
        logger.info("Opening user store pool", **pool_config)

        pool = AsyncConnectionPool(
            conninfo=conninfo,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=self._configure_connection,
            **pool_config,
        )
        try:
            await pool.open()
            await pool.wait()
        except Exception as e:
            logger.error("User store pool failed to open", error=str(e))
            await pool.close()
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        self.pool = pool
        logger.info("User store pool ready")

    async def _configure_connection(self, conn: psycopg.AsyncConnection) -> None:
        conn.row_factory = dict_row
        await conn.set_autocommit(True)
        await conn.execute(
            sql.SQL("SET application_name = {}").format(
                sql.Literal(f"alpha-builder-{settings.environment}")
            )
        )
        await conn.execute("SET timezone = 'UTC'")

    async def close(self) -> None:
        if self.pool is None:
            return
        pool, self.pool = self.pool, None
        try:
            await asyncio.wait_for(pool.close(), timeout=CLOSE_TIMEOUT_SECONDS)
            logger.info("User store pool closed")
        except TimeoutError:
            logger.warning("User store pool close timed out")
        except Exception as e:
            logger.error("Error closing user store pool", error=str(e))

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.connection() as conn:
            yield conn

    async def health_check(self) -> dict[str, Any]:
        if self.pool is None:
            return {"healthy": False, "error": "Pool not initialized"}

        started = time.time()
        try:
            async with self.connection() as conn:
                cursor = await conn.execute("SELECT 1 AS ok")
                row = await cursor.fetchone()
        except Exception as e:
            return {"healthy": False, "error": str(e)}

        stats = self.pool.get_stats()
        return {
            "healthy": bool(row) and row["ok"] == 1,
            "latency_ms": round((time.time() - started) * 1000, 2),
            "pool_size": stats.get("pool_size", 0),
            "pool_available": stats.get("pool_available", 0),
        }


db_pool = DatabasePoolManager()


async def get_db_connection():
    return db_pool.connection()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
