from pydantic import BaseModel, EmailStr, Field

ETH_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
BYTES32_PATTERN = r"^0x[0-9a-fA-F]{64}$"
SALT_PATTERN = r"^\d+$"
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class InitiateZkEmailRequest(BaseModel):
    """Request body for starting a zk-email verification session."""

    email: EmailStr
    owner_address: str = Field(..., pattern=ETH_ADDRESS_PATTERN)
    salt: str | None = Field(None, pattern=SALT_PATTERN, description="uint256 salt as decimal string")


class VerifyZkEmailRequest(BaseModel):
    session_id: str = Field(..., pattern=UUID_PATTERN)
    proof: str = Field(..., pattern=r"^0x[0-9a-fA-F]+$")
    nullifier: str = Field(..., pattern=BYTES32_PATTERN)
    user_op_hash: str = Field(..., pattern=BYTES32_PATTERN)


class BinanceOnboardRequest(BaseModel):
    api_key: str = Field(..., min_length=1)
    api_secret: str = Field(..., min_length=1)
    binance_wallet_address: str = Field(..., pattern=ETH_ADDRESS_PATTERN)
    owner_address: str = Field(..., pattern=ETH_ADDRESS_PATTERN)
    salt: str | None = Field(None, pattern=SALT_PATTERN)
