"""
users.py
--------
Purpose:
    Read access to onboarded profiles.

Usage:
    GET /users/me                   - profile of the bearer token's subject
    GET /users/by-wallet/{address}  - profile owning a smart-account address
"""

from fastapi import APIRouter, Depends, HTTPException, Path, status

from app.auth.verify import auth_dependency
from app.infrastructure.observability.logging import get_logger
from app.models.api.auth_request import ETH_ADDRESS_PATTERN
from app.models.api.user_response import UserProfileResponse
from app.services import user_service
from app.services.user_service import UserNotFoundError

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)


@router.get("/me", response_model=UserProfileResponse)
async def get_me(claims: dict = Depends(auth_dependency)):
    """
    Raises:
        401: Missing, invalid or expired token
        404: Token subject has no profile (e.g. store was reset)
    """
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing user ID"
        )

    try:
        profile = await user_service.user_repository.find_by_id(user_id)
    except UserNotFoundError as e:
        logger.warning("Token subject has no profile", user_id=user_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return UserProfileResponse.from_profile(profile)


@router.get("/by-wallet/{address}", response_model=UserProfileResponse)
async def get_by_wallet(address: str = Path(..., pattern=ETH_ADDRESS_PATTERN)):
    profile = await user_service.user_repository.find_by_aa_wallet(address)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserProfileResponse.from_profile(profile)
