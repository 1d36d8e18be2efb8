"""Salt resolution for deterministic account derivation."""

import time

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SaltRequiredError(ValueError):
    """Raised when SALT_POLICY=explicit and no salt was supplied."""


def resolve_salt(salt: str | None, *, policy: str | None = None) -> str:
    """
    Return the salt to use for a derivation.

    A supplied salt must be a decimal string (it is sent to the factory as a
    uint256). Without one, the "timestamp" policy uses the current time in
    milliseconds, which makes retries derive a different address; the
    "explicit" policy refuses instead.
    """
    policy = policy or settings.SALT_POLICY

    if salt is not None:
        if not (salt.isascii() and salt.isdigit()):
            raise ValueError("salt must be a numeric string")
        return salt

    if policy == "explicit":
        raise SaltRequiredError("salt is required when SALT_POLICY=explicit")

    generated = str(time.time_ns() // 1_000_000)
    logger.warning("No salt supplied, using timestamp salt", salt=generated)
    return generated


def salt_to_int(salt: str | None, *, policy: str | None = None) -> int:
    return int(resolve_salt(salt, policy=policy))
