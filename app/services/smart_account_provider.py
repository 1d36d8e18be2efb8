"""
Smart-account providers.

Onboarding flows ask a provider for the account address belonging to a
parameter tuple; which provider is used is a configuration choice
(SMART_ACCOUNT_PROVIDER), not something call sites decide.
"""

from typing import Protocol

from app.config import ConfigurationError, settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import AccountDerivationParams, WalletHandle
from app.services.ethereum_service import EthereumService, EthereumServiceError, ethereum_service

logger = get_logger(__name__)


class SmartAccountProvider(Protocol):
    name: str

    async def derive_or_create(self, params: AccountDerivationParams) -> WalletHandle: ...


class FactoryAccountProvider:
    """
    Create the account on-chain when a signer is available, else predict.

    Any failure of the creation attempt falls back to the read-only
    prediction with the same params. A missing factory address is not
    recoverable and aborts before either call.
    """

    name = "factory"

    def __init__(self, ethereum: EthereumService):
        self.ethereum = ethereum

    async def derive_or_create(self, params: AccountDerivationParams) -> WalletHandle:
        self.ethereum.assert_factory_configured()

        if not self.ethereum.has_signer:
            logger.info("No signer configured, predicting account address", kind=params.kind.name)
            address = await self.ethereum.predict_account_address(params)
            return WalletHandle(address=address)

        try:
            result = await self.ethereum.create_account(params)
            return WalletHandle(address=result.account_address, created=True, tx_hash=result.tx_hash)
        except (EthereumServiceError, ConfigurationError) as e:
            logger.warning(
                "createAccount failed, falling back to deterministic address",
                kind=params.kind.name,
                error=str(e),
                error_type=type(e).__name__,
            )

        address = await self.ethereum.predict_account_address(params)
        return WalletHandle(address=address)


class PredictOnlyAccountProvider:
    """Never sends a transaction; returns the counterfactual address."""

    name = "predict_only"

    def __init__(self, ethereum: EthereumService):
        self.ethereum = ethereum

    async def derive_or_create(self, params: AccountDerivationParams) -> WalletHandle:
        address = await self.ethereum.predict_account_address(params)
        return WalletHandle(address=address)


PROVIDERS: dict[str, type] = {
    FactoryAccountProvider.name: FactoryAccountProvider,
    PredictOnlyAccountProvider.name: PredictOnlyAccountProvider,
}


def build_account_provider(
    name: str | None = None, ethereum: EthereumService | None = None
) -> SmartAccountProvider:
    name = name or settings.SMART_ACCOUNT_PROVIDER
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown SMART_ACCOUNT_PROVIDER: {name}") from None

    logger.info("Smart account provider selected", provider=name)
    return provider_cls(ethereum or ethereum_service)


account_provider = build_account_provider()
