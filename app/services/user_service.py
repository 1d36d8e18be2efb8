"""
User service for onboarded profiles.

Two backends share the UserRepository interface: an in-process dict (default)
and Postgres through the shared connection pool. The postgres backend expects
a `users` table with one column per UserProfile field and a unique constraint
on aa_wallet_address; schema management is handled outside this service.

A smart-account address belongs to at most one profile. Both backends raise
WalletAlreadyRegisteredError for a second profile with the same address
(compared case-insensitively).
"""

import uuid
from datetime import UTC, datetime
from typing import Protocol

from psycopg.errors import UniqueViolation

from app.config import settings
from app.db.helpers import DatabaseError, fetch_all, fetch_one, with_db_retry
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import (
    CreateProfileInput,
    ProfileChanges,
    UserProfile,
    UserType,
)

logger = get_logger(__name__)

USER_COLUMNS = (
    "id, type, email_commitment, binance_wallet, aa_wallet_address, "
    "owner_address, salt, created_at, updated_at"
)


class UserNotFoundError(LookupError):
    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class WalletAlreadyRegisteredError(Exception):
    def __init__(self, aa_wallet_address: str):
        super().__init__(f"Smart account {aa_wallet_address} is already registered")
        self.aa_wallet_address = aa_wallet_address


class UserRepository(Protocol):
    async def create_profile(self, data: CreateProfileInput) -> UserProfile: ...

    async def find_by_id(self, user_id: str) -> UserProfile: ...

    async def find_by_aa_wallet(self, address: str) -> UserProfile | None: ...

    async def update_profile(self, user_id: str, changes: ProfileChanges) -> UserProfile: ...

    async def find_many_by_type(self, user_type: UserType) -> list[UserProfile]: ...


class InMemoryUserRepository:
    def __init__(self):
        self._users: dict[str, UserProfile] = {}

    async def create_profile(self, data: CreateProfileInput) -> UserProfile:
        if await self.find_by_aa_wallet(data.aa_wallet_address) is not None:
            logger.warning("Duplicate smart account rejected", aa_wallet_address=data.aa_wallet_address)
            raise WalletAlreadyRegisteredError(data.aa_wallet_address)

        now = datetime.now(UTC)
        profile = UserProfile(id=str(uuid.uuid4()), created_at=now, updated_at=now, **data.model_dump())
        self._users[profile.id] = profile
        logger.info("User profile created", user_id=profile.id, user_type=profile.type)
        return profile

    async def find_by_id(self, user_id: str) -> UserProfile:
        try:
            return self._users[user_id]
        except KeyError:
            raise UserNotFoundError(user_id) from None

    async def find_by_aa_wallet(self, address: str) -> UserProfile | None:
        wanted = address.lower()
        for profile in self._users.values():
            if profile.aa_wallet_address.lower() == wanted:
                return profile
        return None

    async def update_profile(self, user_id: str, changes: ProfileChanges) -> UserProfile:
        current = await self.find_by_id(user_id)
        updated = current.model_copy(
            update={**changes.as_updates(), "updated_at": datetime.now(UTC)}
        )
        self._users[user_id] = updated
        return updated

    async def find_many_by_type(self, user_type: UserType) -> list[UserProfile]:
        matches = [p for p in self._users.values() if p.type == user_type]
        return sorted(matches, key=lambda p: p.created_at, reverse=True)


def _row_to_profile(row: dict) -> UserProfile:
    return UserProfile(**{**row, "id": str(row["id"])})


class PostgresUserRepository:
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def create_profile(self, data: CreateProfileInput) -> UserProfile:
        query = f"""
        INSERT INTO users (
            id, type, email_commitment, binance_wallet, aa_wallet_address,
            owner_address, salt, created_at, updated_at
        ) VALUES (%s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
        RETURNING {USER_COLUMNS}
        """
        try:
            row = await fetch_one(
                query,
                (
                    str(uuid.uuid4()),
                    data.type,
                    data.email_commitment,
                    data.binance_wallet,
                    data.aa_wallet_address,
                    data.owner_address,
                    data.salt,
                ),
            )
        except DatabaseError as e:
            if isinstance(e.__cause__, UniqueViolation):
                raise WalletAlreadyRegisteredError(data.aa_wallet_address) from e
            raise
        profile = _row_to_profile(row)
        logger.info("User profile created", user_id=profile.id, user_type=profile.type)
        return profile

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def find_by_id(self, user_id: str) -> UserProfile:
        row = await fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
        if not row:
            raise UserNotFoundError(user_id)
        return _row_to_profile(row)

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def find_by_aa_wallet(self, address: str) -> UserProfile | None:
        row = await fetch_one(
            f"SELECT {USER_COLUMNS} FROM users WHERE lower(aa_wallet_address) = lower(%s)",
            (address,),
        )
        return _row_to_profile(row) if row else None

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def update_profile(self, user_id: str, changes: ProfileChanges) -> UserProfile:
        updates = changes.as_updates()
        if not updates:
            return await self.find_by_id(user_id)

        # Column names come from ProfileChanges fields, never from user input
        assignments = ", ".join(f"{column} = %s" for column in updates)
        query = f"""
        UPDATE users SET {assignments}, updated_at = NOW()
        WHERE id = %s
        RETURNING {USER_COLUMNS}
        """
        row = await fetch_one(query, (*updates.values(), user_id))
        if not row:
            raise UserNotFoundError(user_id)

        logger.info("User profile updated", user_id=user_id, fields=list(updates))
        return _row_to_profile(row)

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def find_many_by_type(self, user_type: UserType) -> list[UserProfile]:
        rows = await fetch_all(
            f"SELECT {USER_COLUMNS} FROM users WHERE type = %s ORDER BY created_at DESC",
            (user_type,),
        )
        return [_row_to_profile(row) for row in rows]


def build_user_repository() -> UserRepository:
    if settings.USER_STORE_BACKEND == "postgres":
        logger.info("Using Postgres user repository")
        return PostgresUserRepository()

    logger.info("Using in-memory user repository")
    return InMemoryUserRepository()


user_repository = build_user_repository()
