from datetime import datetime

from pydantic import BaseModel

from app.models.domain.user_domain import UserProfile, UserType


class UserProfileResponse(BaseModel):
    """Public view of a profile; the derivation salt is not exposed."""

    id: str
    type: UserType
    email_commitment: str | None
    binance_wallet: str | None
    aa_wallet_address: str
    owner_address: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserProfileResponse":
        return cls(**profile.model_dump(exclude={"salt"}))
