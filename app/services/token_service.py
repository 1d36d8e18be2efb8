"""
Token Service for issuing and checking Alpha Builder bearer tokens.

Tokens are stateless HS256 JWTs binding a user id, the account type and the
derived smart-account address. There is no revocation list or refresh flow;
expiry is the only bound.
"""

from datetime import UTC, datetime, timedelta

import jwt

from app.config import ConfigurationError, settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import UserType

logger = get_logger(__name__)

TOKEN_ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a bearer token cannot be decoded or has expired."""

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired


class TokenService:
    def __init__(self, secret: str | None = None, default_ttl_seconds: int | None = None):
        secret = secret if secret is not None else settings.JWT_SECRET
        if not secret:
            raise ConfigurationError("JWT_SECRET env var missing")
        self._secret = secret
        self.default_ttl_seconds = default_ttl_seconds or settings.JWT_TTL_SECONDS

    def issue_token(
        self,
        subject: str,
        user_type: UserType,
        aa_wallet_address: str,
        ttl_seconds: int | None = None,
    ) -> str:
        now = datetime.now(UTC)
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        payload = {
            "sub": subject,
            "type": user_type,
            "aaWalletAddress": aa_wallet_address,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }
        token = jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

        logger.info("Auth token issued", user_id=subject, user_type=user_type, ttl_seconds=ttl)
        return token

    def decode_token(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["sub", "exp"], "verify_exp": True},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError("Token has expired", expired=True) from e
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid authentication token: {e}") from e


# Constructed at import so a missing JWT_SECRET stops the process at startup
token_service = TokenService()
