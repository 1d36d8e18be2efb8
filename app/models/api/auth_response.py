from pydantic import BaseModel

from app.services.binance_service import BalanceSnapshot


class InitiateZkEmailResponse(BaseModel):
    session_id: str
    email_commitment: str
    salt: str


class VerifyZkEmailResponse(BaseModel):
    aa_wallet_address: str
    email_commitment: str
    token: str
    user_id: str


class BinanceOnboardResponse(BaseModel):
    aa_wallet_address: str
    binance_wallet_address: str
    balances: list[BalanceSnapshot]
    token: str
    user_id: str
