"""
Pending zk-email session storage.

Sessions live between /auth/zk-email/init and /auth/zk-email/verify. The
store is an explicit keyed interface so the in-process dict can be swapped
for Redis without touching ZkEmailService. `take` is the single-use primitive:
it returns the session and removes it in one step, so two concurrent
verifications of the same id cannot both succeed.
"""

import math
from datetime import UTC, datetime
from typing import Protocol

from app.config import ConfigurationError, settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.session_domain import PendingSession
from app.services.infrastructure.redis_client import FastRedisClient, fast_redis

logger = get_logger(__name__)

SESSION_KEY_PREFIX = "zk_email_session"


class SessionStore(Protocol):
    async def get(self, session_id: str) -> PendingSession | None: ...

    async def put(self, session: PendingSession) -> None: ...

    async def delete_if_present(self, session_id: str) -> bool: ...

    async def take(self, session_id: str) -> PendingSession | None: ...


class InMemorySessionStore:
    """
    Process-local store. Nothing survives a restart.

    None of the methods await between reading and mutating the dict, so each
    call is atomic with respect to other coroutines on the event loop.
    """

    def __init__(self, ttl_seconds: int | None = None):
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, PendingSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _live(self, session: PendingSession | None) -> PendingSession | None:
        if session is None:
            return None
        if session.is_expired(self.ttl_seconds):
            self._sessions.pop(session.id, None)
            logger.info("Pending session expired", session_id=session.id)
            return None
        return session

    async def get(self, session_id: str) -> PendingSession | None:
        return self._live(self._sessions.get(session_id))

    async def put(self, session: PendingSession) -> None:
        self._sessions[session.id] = session

    async def delete_if_present(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def take(self, session_id: str) -> PendingSession | None:
        session = self._sessions.pop(session_id, None)
        if session is not None and session.is_expired(self.ttl_seconds):
            logger.info("Pending session expired", session_id=session_id)
            return None
        return session

    def prune_expired(self, now: datetime | None = None) -> int:
        """Drop expired sessions, returning how many were removed."""
        if not self.ttl_seconds:
            return 0
        now = now or datetime.now(UTC)
        expired = [
            sid for sid, s in self._sessions.items() if s.is_expired(self.ttl_seconds, now)
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Pruned expired sessions", count=len(expired))
        return len(expired)


class RedisSessionStore:
    """
    Redis-backed store; expiry is delegated to key TTLs.

    The key TTL is what is left of the session lifetime measured from
    created_at, so putting a session back never extends it.
    """

    def __init__(self, client: FastRedisClient, ttl_seconds: int | None = None):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def _redis_key(self, session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}:{session_id}"

    async def get(self, session_id: str) -> PendingSession | None:
        raw = await self.client.get(self._redis_key(session_id))
        return PendingSession.model_validate_json(raw) if raw else None

    def _remaining_ttl(self, session: PendingSession, now: datetime | None = None) -> int | None:
        if not self.ttl_seconds:
            return None
        now = now or datetime.now(UTC)
        elapsed = (now - session.created_at).total_seconds()
        return math.ceil(self.ttl_seconds - elapsed)

    async def put(self, session: PendingSession) -> None:
        ttl = self._remaining_ttl(session)
        if ttl is not None and ttl <= 0:
            logger.info("Pending session expired", session_id=session.id)
            await self.client.delete(self._redis_key(session.id))
            return

        stored = await self.client.set_with_ttl(
            self._redis_key(session.id), session.model_dump_json(), ttl
        )
        if not stored:
            raise RuntimeError(f"Failed to store session {session.id}")

    async def delete_if_present(self, session_id: str) -> bool:
        return await self.client.delete(self._redis_key(session_id))

    async def take(self, session_id: str) -> PendingSession | None:
        raw = await self.client.getdel(self._redis_key(session_id))
        return PendingSession.model_validate_json(raw) if raw else None


def build_session_store() -> SessionStore:
    """Create the store selected by SESSION_STORE_BACKEND."""
    ttl = settings.session_ttl()
    if settings.SESSION_STORE_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ConfigurationError("SESSION_STORE_BACKEND=redis requires REDIS_URL")
        logger.info("Using Redis session store", ttl_seconds=ttl)
        return RedisSessionStore(fast_redis, ttl_seconds=ttl)

    logger.info("Using in-memory session store", ttl_seconds=ttl)
    return InMemorySessionStore(ttl_seconds=ttl)
