from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field


class PendingSession(BaseModel):
    """A zk-email verification request waiting for its proof."""

    id: str
    owner_address: str
    email: str
    email_commitment: str
    salt: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def is_expired(self, ttl_seconds: int | None, now: datetime | None = None) -> bool:
        if not ttl_seconds:
            return False
        now = now or datetime.now(UTC)
        return now - self.created_at >= timedelta(seconds=ttl_seconds)


class InitiatedSession(BaseModel):
    """What the caller gets back from session initiation."""

    session_id: str
    email_commitment: str
    salt: str
