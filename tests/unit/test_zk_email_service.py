import asyncio
import re
from unittest.mock import AsyncMock

import jwt
import pytest

from app.config import ConfigurationError
from app.models.domain.account_domain import WalletKind
from app.services.ethereum_service import EthereumServiceError
from app.services.salt_policy import SaltRequiredError
from app.services.zk_email_service import (
    ProofRejectedError,
    SessionNotFoundError,
    compute_email_commitment,
)

OWNER = "0x1111111111111111111111111111111111111111"
AA_WALLET = "0x3333333333333333333333333333333333333333"
BYTES32 = "0x" + "ab" * 32
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def test_commitment_is_deterministic_keccak_hex():
    first = compute_email_commitment("alice@example.com", "session", "1")
    second = compute_email_commitment("alice@example.com", "session", "1")

    assert first == second
    assert re.fullmatch(r"0x[0-9a-f]{64}", first)


def test_commitment_changes_with_each_input():
    base = compute_email_commitment("alice@example.com", "session", "1")

    assert compute_email_commitment("bob@example.com", "session", "1") != base
    assert compute_email_commitment("alice@example.com", "other", "1") != base
    assert compute_email_commitment("alice@example.com", "session", "2") != base


@pytest.mark.asyncio
async def test_initiate_session_returns_uuid_and_commitment(zk_service):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="7")

    assert UUID_RE.match(session.session_id)
    assert session.salt == "7"
    assert session.email_commitment == compute_email_commitment(
        "alice@example.com", session.session_id, "7"
    )


@pytest.mark.asyncio
async def test_initiate_session_generates_numeric_salt(zk_service, monkeypatch):
    monkeypatch.setattr("app.services.salt_policy.settings.SALT_POLICY", "timestamp")

    session = await zk_service.initiate_session("alice@example.com", OWNER)

    assert session.salt.isdigit()


@pytest.mark.asyncio
async def test_initiate_session_explicit_policy_requires_salt(zk_service, monkeypatch):
    monkeypatch.setattr("app.services.salt_policy.settings.SALT_POLICY", "explicit")

    with pytest.raises(SaltRequiredError):
        await zk_service.initiate_session("alice@example.com", OWNER)


@pytest.mark.asyncio
async def test_session_is_consumed_once(zk_service):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")

    pending = await zk_service.consume_session(session.session_id)
    assert pending.email == "alice@example.com"

    with pytest.raises(SessionNotFoundError):
        await zk_service.consume_session(session.session_id)


@pytest.mark.asyncio
async def test_unknown_session_raises(zk_service):
    with pytest.raises(SessionNotFoundError):
        await zk_service.verify_session("no-such-session", "0x01", BYTES32, BYTES32)


@pytest.mark.asyncio
async def test_verify_session_onboards_native_user(
    zk_service, fake_ethereum, fake_accounts, user_repository, token_service
):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="99")

    result = await zk_service.verify_session(session.session_id, "0xdead", BYTES32, BYTES32)

    assert result["aa_wallet_address"] == AA_WALLET
    assert result["email_commitment"] == session.email_commitment

    fake_ethereum.verify_email_proof.assert_awaited_once_with(
        "0xdead", session.email_commitment, BYTES32, BYTES32
    )
    params = fake_accounts.derive_or_create.await_args.args[0]
    assert params.kind == WalletKind.NATIVE
    assert params.owner == OWNER
    assert params.email_commitment == session.email_commitment
    assert params.salt == "99"

    user = await user_repository.find_by_id(result["user_id"])
    assert user.type == "NATIVE"
    assert user.aa_wallet_address == AA_WALLET

    claims = token_service.decode_token(result["token"])
    assert claims["sub"] == result["user_id"]
    assert claims["type"] == "NATIVE"
    assert claims["aaWalletAddress"] == AA_WALLET
    assert claims["exp"] - claims["iat"] == 3600

    # Tokens are plain JWTs other services can decode
    assert jwt.decode(result["token"], "test-jwt-secret", algorithms=["HS256"])["sub"] == user.id


@pytest.mark.asyncio
async def test_second_verify_of_same_session_fails(zk_service):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")
    await zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)

    with pytest.raises(SessionNotFoundError):
        await zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)


@pytest.mark.asyncio
async def test_rejected_proof_keeps_session_pending(zk_service, fake_ethereum, fake_accounts):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")
    fake_ethereum.verify_email_proof = AsyncMock(return_value=False)

    with pytest.raises(ProofRejectedError):
        await zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)

    fake_accounts.derive_or_create.assert_not_awaited()

    # Retry with a valid proof succeeds on the same session id
    fake_ethereum.verify_email_proof = AsyncMock(return_value=True)
    result = await zk_service.verify_session(session.session_id, "0x02", BYTES32, BYTES32)
    assert result["aa_wallet_address"] == AA_WALLET


@pytest.mark.asyncio
async def test_account_failure_keeps_session_pending(zk_service, fake_accounts, session_store):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")
    fake_accounts.derive_or_create = AsyncMock(
        side_effect=EthereumServiceError("rpc down", operation="getAddress")
    )

    with pytest.raises(EthereumServiceError):
        await zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)

    assert await session_store.get(session.session_id) is not None


@pytest.mark.asyncio
async def test_missing_verifier_configuration_propagates(zk_service, fake_ethereum, user_repository):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")
    fake_ethereum.verify_email_proof = AsyncMock(side_effect=ConfigurationError("no verifier"))

    with pytest.raises(ConfigurationError):
        await zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)

    assert await user_repository.find_many_by_type("NATIVE") == []


@pytest.mark.asyncio
async def test_concurrent_verifies_of_one_session_succeed_once(
    zk_service, fake_ethereum, user_repository
):
    session = await zk_service.initiate_session("alice@example.com", OWNER, salt="1")
    release = asyncio.Event()

    async def slow_verifier(*args):
        await release.wait()
        return True

    fake_ethereum.verify_email_proof = AsyncMock(side_effect=slow_verifier)

    attempts = [
        asyncio.create_task(
            zk_service.verify_session(session.session_id, "0x01", BYTES32, BYTES32)
        )
        for _ in range(5)
    ]
    await asyncio.sleep(0.01)
    release.set()
    results = await asyncio.gather(*attempts, return_exceptions=True)

    successes = [r for r in results if isinstance(r, dict)]
    assert len(successes) == 1
    assert all(isinstance(r, SessionNotFoundError) for r in results if not isinstance(r, dict))
    fake_ethereum.verify_email_proof.assert_awaited_once()
    assert len(await user_repository.find_many_by_type("NATIVE")) == 1
