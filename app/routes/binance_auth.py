"""
binance_auth.py
---------------
Purpose:
    Onboarding by linking an existing Binance wallet.

Usage:
    POST /auth/binance/onboard - API credentials + wallet addresses in,
                                 smart account, balances and a token out
"""

from fastapi import APIRouter, HTTPException, status

from app.config import ConfigurationError
from app.infrastructure.observability.logging import get_logger
from app.models.api.auth_request import BinanceOnboardRequest
from app.models.api.auth_response import BinanceOnboardResponse
from app.services.binance_auth_service import onboard_binance_wallet
from app.services.binance_service import BinanceAPIError
from app.services.ethereum_service import EthereumServiceError
from app.services.salt_policy import SaltRequiredError
from app.services.user_service import WalletAlreadyRegisteredError

router = APIRouter(prefix="/auth/binance", tags=["binance"])
logger = get_logger(__name__)


@router.post("/onboard", response_model=BinanceOnboardResponse)
async def onboard(request: BinanceOnboardRequest):
    """
    Raises:
        400: Salt required by SALT_POLICY=explicit
        409: Smart account already belongs to a profile
        502: Binance or blockchain failure
        503: Factory not configured
    """
    try:
        result = await onboard_binance_wallet(
            api_key=request.api_key,
            api_secret=request.api_secret,
            binance_wallet_address=request.binance_wallet_address,
            owner_address=request.owner_address,
            salt=request.salt,
        )
    except SaltRequiredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except BinanceAPIError as e:
        logger.warning("Binance onboarding failed", status_code=e.status_code, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Binance error: {e}"
        ) from e
    except ConfigurationError as e:
        logger.error("Binance onboarding misconfigured", error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except WalletAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except EthereumServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Blockchain error: {e}"
        ) from e

    return BinanceOnboardResponse(**result)
