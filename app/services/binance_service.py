"""
Binance Service for reading a user's spot wallet with their API key.

Only the signed account endpoint is used. Credentials are passed through per
request and never stored.
"""

import hashlib
import hmac
import time
from datetime import UTC, datetime
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

ACCOUNT_PATH = "/sapi/v3/account"
REQUEST_TIMEOUT = 10  # seconds


class BinanceAPIError(Exception):
    """Binance request failed or returned an unexpected payload."""

    def __init__(self, message: str, status_code: int | None = None, response_data: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class BalanceSnapshot(BaseModel):
    asset: str
    available: float
    locked: float


class WalletSummary(BaseModel):
    balances: list[BalanceSnapshot]
    fetched_at: datetime


def sign_query(params: dict, secret: str) -> str:
    """URL-encode params and append the HMAC-SHA256 hex signature."""
    query = urlencode({k: str(v) for k, v in params.items()})
    signature = hmac.new(secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{query}&signature={signature}"


class BinanceService:
    def __init__(
        self,
        base_url: str | None = None,
        recv_window_ms: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.BINANCE_API_URL).rstrip("/")
        self.recv_window_ms = recv_window_ms or settings.BINANCE_RECV_WINDOW_MS
        self._transport = transport

    def _build_signed_query(self, secret: str, params: dict | None = None) -> str:
        return sign_query(
            {
                "recvWindow": self.recv_window_ms,
                "timestamp": time.time_ns() // 1_000_000,
                **(params or {}),
            },
            secret,
        )

    async def fetch_wallet_summary(self, api_key: str, api_secret: str) -> WalletSummary:
        url = f"{self.base_url}{ACCOUNT_PATH}?{self._build_signed_query(api_secret)}"

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self._transport) as client:
                response = await client.get(url, headers={"X-MBX-APIKEY": api_key})
        except httpx.RequestError as e:
            logger.error("Network error calling Binance", error=str(e), error_type=type(e).__name__)
            raise BinanceAPIError(f"Network error calling Binance: {e}") from e

        if response.status_code != 200:
            try:
                data = response.json()
            except ValueError:
                data = {"raw": response.text[:200]}
            logger.warning(
                "Binance account request failed",
                status_code=response.status_code,
                binance_code=data.get("code") if isinstance(data, dict) else None,
            )
            raise BinanceAPIError(
                f"Binance request failed with status {response.status_code}",
                status_code=response.status_code,
                response_data=data if isinstance(data, dict) else {},
            )

        try:
            raw_balances = response.json().get("balances") or []
            balances = [
                BalanceSnapshot(
                    asset=item["asset"],
                    available=float(item["free"]),
                    locked=float(item["locked"]),
                )
                for item in raw_balances
                if float(item["free"]) > 0 or float(item["locked"]) > 0
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise BinanceAPIError(f"Unexpected Binance account payload: {e}") from e

        logger.debug("Fetched Binance balances", count=len(balances))
        return WalletSummary(balances=balances, fetched_at=datetime.now(UTC))


binance_service = BinanceService()
