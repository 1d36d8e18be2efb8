from datetime import datetime
from typing import Literal

from pydantic import BaseModel

UserType = Literal["BINANCE_SHADOW", "NATIVE"]


class UserProfile(BaseModel):
    """An onboarded user and the smart account derived for them."""

    id: str
    type: UserType
    email_commitment: str | None = None
    binance_wallet: str | None = None
    aa_wallet_address: str
    owner_address: str
    salt: str
    created_at: datetime
    updated_at: datetime


class CreateProfileInput(BaseModel):
    type: UserType
    email_commitment: str | None = None
    binance_wallet: str | None = None
    aa_wallet_address: str
    owner_address: str
    salt: str


class ProfileChanges(BaseModel):
    """Partial update; fields left as None are not touched."""

    type: UserType | None = None
    email_commitment: str | None = None
    binance_wallet: str | None = None
    aa_wallet_address: str | None = None
    owner_address: str | None = None
    salt: str | None = None

    def as_updates(self) -> dict:
        return self.model_dump(exclude_none=True)
