from unittest.mock import AsyncMock, MagicMock

import pytest

from app.config import ConfigurationError
from app.models.domain.account_domain import (
    AccountDerivationParams,
    CreateAccountResult,
    WalletKind,
)
from app.services.ethereum_service import EthereumServiceError
from app.services.smart_account_provider import (
    FactoryAccountProvider,
    PredictOnlyAccountProvider,
    build_account_provider,
)

OWNER = "0x1111111111111111111111111111111111111111"
PREDICTED = "0x6666666666666666666666666666666666666666"
CREATED = "0x8888888888888888888888888888888888888888"


def _ethereum(has_signer: bool) -> MagicMock:
    ethereum = MagicMock(unsafe=True)
    ethereum.has_signer = has_signer
    ethereum.predict_account_address = AsyncMock(return_value=PREDICTED)
    ethereum.create_account = AsyncMock(
        return_value=CreateAccountResult(account_address=CREATED, tx_hash="0xabc", block_number=1)
    )
    return ethereum


PARAMS = AccountDerivationParams(owner=OWNER, kind=WalletKind.NATIVE, salt="1")


@pytest.mark.asyncio
async def test_factory_provider_predicts_without_signer():
    ethereum = _ethereum(has_signer=False)

    wallet = await FactoryAccountProvider(ethereum).derive_or_create(PARAMS)

    assert wallet.address == PREDICTED
    assert wallet.created is False
    ethereum.create_account.assert_not_awaited()


@pytest.mark.asyncio
async def test_factory_provider_creates_with_signer():
    ethereum = _ethereum(has_signer=True)

    wallet = await FactoryAccountProvider(ethereum).derive_or_create(PARAMS)

    assert wallet.address == CREATED
    assert wallet.created is True
    assert wallet.tx_hash == "0xabc"
    ethereum.predict_account_address.assert_not_awaited()


@pytest.mark.asyncio
async def test_factory_provider_falls_back_to_prediction_on_failure():
    ethereum = _ethereum(has_signer=True)
    ethereum.create_account = AsyncMock(side_effect=EthereumServiceError("reverted"))

    wallet = await FactoryAccountProvider(ethereum).derive_or_create(PARAMS)

    assert wallet.address == PREDICTED
    assert wallet.created is False
    ethereum.predict_account_address.assert_awaited_once_with(PARAMS)


@pytest.mark.asyncio
async def test_factory_provider_requires_factory():
    ethereum = _ethereum(has_signer=True)
    ethereum.assert_factory_configured.side_effect = ConfigurationError("missing factory")

    with pytest.raises(ConfigurationError):
        await FactoryAccountProvider(ethereum).derive_or_create(PARAMS)

    ethereum.create_account.assert_not_awaited()
    ethereum.predict_account_address.assert_not_awaited()


@pytest.mark.asyncio
async def test_factory_provider_propagates_prediction_failure():
    ethereum = _ethereum(has_signer=False)
    ethereum.predict_account_address = AsyncMock(side_effect=EthereumServiceError("rpc down"))

    with pytest.raises(EthereumServiceError):
        await FactoryAccountProvider(ethereum).derive_or_create(PARAMS)


@pytest.mark.asyncio
async def test_predict_only_provider_never_creates():
    ethereum = _ethereum(has_signer=True)

    wallet = await PredictOnlyAccountProvider(ethereum).derive_or_create(PARAMS)

    assert wallet.address == PREDICTED
    ethereum.create_account.assert_not_awaited()


def test_build_account_provider_by_name():
    ethereum = _ethereum(has_signer=False)

    assert isinstance(build_account_provider("factory", ethereum), FactoryAccountProvider)
    assert isinstance(build_account_provider("predict_only", ethereum), PredictOnlyAccountProvider)


def test_build_account_provider_unknown_name():
    with pytest.raises(ConfigurationError):
        build_account_provider("zerodev", _ethereum(has_signer=False))
