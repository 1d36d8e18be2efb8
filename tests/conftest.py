import os

# Required settings must exist before any app module is imported
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ETHEREUM_RPC_URL", "http://127.0.0.1:8545")
os.environ.setdefault("SESSION_STORE_BACKEND", "memory")
os.environ.setdefault("USER_STORE_BACKEND", "memory")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from app.auth.verify import auth_dependency  # noqa: E402
from app.models.domain.account_domain import WalletHandle  # noqa: E402
from app.services.session_store import InMemorySessionStore  # noqa: E402
from app.services.token_service import TokenService  # noqa: E402
from app.services.user_service import InMemoryUserRepository  # noqa: E402
from app.services.zk_email_service import ZkEmailService  # noqa: E402

OWNER = "0x1111111111111111111111111111111111111111"
BINANCE_WALLET = "0x2222222222222222222222222222222222222222"
AA_WALLET = "0x3333333333333333333333333333333333333333"
BYTES32 = "0x" + "ab" * 32


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "user-123", "type": "NATIVE", "aaWalletAddress": AA_WALLET}

    return _override


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl_s
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def delete(self, key: str) -> bool:
        return self.store.pop(key, None) is not None

    async def getdel(self, key: str) -> str | None:
        return self.store.pop(key, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[auth_dependency] = auth_override

    return _apply


@pytest.fixture
def token_service():
    return TokenService(secret="test-jwt-secret", default_ttl_seconds=3600)


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def session_store():
    return InMemorySessionStore(ttl_seconds=900)


@pytest.fixture
def fake_ethereum():
    ethereum = MagicMock()
    ethereum.verify_email_proof = AsyncMock(return_value=True)
    return ethereum


@pytest.fixture
def fake_accounts():
    accounts = MagicMock()
    accounts.name = "fake"
    accounts.derive_or_create = AsyncMock(return_value=WalletHandle(address=AA_WALLET))
    return accounts


@pytest.fixture
def zk_service(session_store, fake_ethereum, fake_accounts, user_repository, token_service):
    return ZkEmailService(
        sessions=session_store,
        ethereum=fake_ethereum,
        accounts=fake_accounts,
        users=user_repository,
        tokens=token_service,
    )
