from enum import IntEnum

from pydantic import BaseModel


class WalletKind(IntEnum):
    """Discriminant passed to the factory as uint8."""

    BINANCE_SHADOW = 0
    NATIVE = 1


class AccountDerivationParams(BaseModel):
    """
    Inputs for both getAddress and createAccount.

    Both factory calls must receive the same tuple built from one instance of
    this model, otherwise the predicted and created addresses diverge.
    """

    owner: str
    kind: WalletKind
    binance_wallet: str | None = None
    email_commitment: str | None = None
    verifier_override: str | None = None
    salt: str | None = None


class CreateAccountResult(BaseModel):
    account_address: str
    tx_hash: str
    block_number: int | None = None


class WalletHandle(BaseModel):
    """Result of a smart-account provider run."""

    address: str
    created: bool = False
    tx_hash: str | None = None
