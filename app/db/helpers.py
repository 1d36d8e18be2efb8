"""
Query helpers for the postgres user store.

Rows come back as dicts (the pool installs dict_row on every connection).
Driver errors are wrapped in DatabaseError; with_db_retry decides which of
them are worth another attempt.
"""

import asyncio
import functools
from typing import Any

import psycopg

from app.db.pool import get_db_connection
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


async def _run(operation: str, query: str, params: tuple, many: bool):
    try:
        async with await get_db_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await (cur.fetchall() if many else cur.fetchone())
    except psycopg.Error as e:
        logger.error(
            "User store query failed",
            operation=operation,
            query=" ".join(query.split())[:100],
            error=str(e),
            error_type=type(e).__name__,
        )
        raise DatabaseError(f"Query failed: {e}", operation=operation) from e


async def fetch_one(query: str, params: tuple = ()) -> dict[str, Any] | None:
    """First row of the result as a dict, or None for an empty result."""
    return await _run("fetch_one", query, params, many=False) or None


async def fetch_all(query: str, params: tuple = ()) -> list[dict[str, Any]]:
    return await _run("fetch_all", query, params, many=True)


def _driver_error(error: Exception) -> BaseException | None:
    return error.__cause__ if isinstance(error, DatabaseError) else error


def _is_permanent(error: Exception) -> bool:
    return isinstance(_driver_error(error), (psycopg.IntegrityError, psycopg.DataError))


def _is_transient(error: Exception) -> bool:
    return isinstance(_driver_error(error), psycopg.OperationalError)


def with_db_retry(max_retries: int = 3, base_delay: float = 0.1):
    """
    Retry a coroutine on connection-level failures with exponential backoff.

    Only psycopg.OperationalError (raw or wrapped in DatabaseError) is
    retried. Integrity and data errors are permanent. Anything else, such as
    UserNotFoundError, propagates on the first attempt.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (DatabaseError, psycopg.Error) as e:
                    if _is_permanent(e):
                        raise DatabaseError(
                            f"Permanent database error: {e}",
                            operation=func.__name__,
                            recoverable=False,
                        ) from _driver_error(e)
                    if not _is_transient(e):
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "User store operation gave up",
                            operation=func.__name__,
                            attempts=attempt + 1,
                            error=str(e),
                        )
                        raise DatabaseError(
                            f"Operation failed after {max_retries} retries: {e}",
                            operation=func.__name__,
                            recoverable=False,
                        ) from e

                    delay = base_delay * (2**attempt)
                    logger.warning(
                        "User store operation failed, retrying",
                        operation=func.__name__,
                        attempt=attempt + 1,
                        delay=delay,
                        error=str(e),
                    )
                    attempt += 1
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
