"""
verify.py
---------
Purpose:
    Bearer token checks for routes that need an onboarded user.

Notes:
    - Tokens are the HS256 JWTs issued by TokenService at the end of
      zk-email verification or Binance onboarding.
    - `auth_dependency` returns the decoded claims (sub, type, aaWalletAddress).
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.infrastructure.observability.logging import get_logger
from app.services.token_service import TokenError, token_service

logger = get_logger(__name__)

_bearer = HTTPBearer()


def verify_jwt(token: str) -> dict:
    try:
        return token_service.decode_token(token)
    except TokenError as e:
        logger.info("Bearer token rejected", expired=e.expired, reason=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def auth_dependency(credentials: HTTPAuthorizationCredentials = Depends(_bearer)) -> dict:
    return verify_jwt(credentials.credentials)
