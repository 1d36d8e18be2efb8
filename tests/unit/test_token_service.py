import time

import jwt
import pytest

from app.config import ConfigurationError
from app.services.token_service import TokenError, TokenService

AA_WALLET = "0x3333333333333333333333333333333333333333"


def test_issue_token_is_three_segment_jwt(token_service):
    token = token_service.issue_token("user-1", "NATIVE", AA_WALLET)

    assert len(token.split(".")) == 3


def test_issue_token_claims(token_service):
    token = token_service.issue_token("user-1", "BINANCE_SHADOW", AA_WALLET)

    claims = token_service.decode_token(token)

    assert claims["sub"] == "user-1"
    assert claims["type"] == "BINANCE_SHADOW"
    assert claims["aaWalletAddress"] == AA_WALLET
    assert claims["exp"] - claims["iat"] == 3600


def test_custom_ttl(token_service):
    claims = token_service.decode_token(
        token_service.issue_token("user-1", "NATIVE", AA_WALLET, ttl_seconds=60)
    )

    assert claims["exp"] - claims["iat"] == 60


def test_expired_token_is_rejected(token_service):
    token = jwt.encode(
        {"sub": "user-1", "exp": int(time.time()) - 10},
        "test-jwt-secret",
        algorithm="HS256",
    )

    with pytest.raises(TokenError) as exc_info:
        token_service.decode_token(token)

    assert exc_info.value.expired is True


def test_token_signed_with_other_secret_is_rejected(token_service):
    other = TokenService(secret="another-secret")
    token = other.issue_token("user-1", "NATIVE", AA_WALLET)

    with pytest.raises(TokenError) as exc_info:
        token_service.decode_token(token)

    assert exc_info.value.expired is False


def test_token_without_subject_is_rejected(token_service):
    token = jwt.encode({"exp": int(time.time()) + 60}, "test-jwt-secret", algorithm="HS256")

    with pytest.raises(TokenError):
        token_service.decode_token(token)


def test_empty_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService(secret="")
