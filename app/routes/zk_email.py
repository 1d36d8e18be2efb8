"""
zk_email.py
-----------
Purpose:
    Onboarding by zk-email proof of email ownership.

Usage:
    1. POST /auth/zk-email/init   - open a session, get the commitment to prove against
    2. POST /auth/zk-email/verify - submit the proof, receive the smart account and a token
"""

from fastapi import APIRouter, HTTPException, status

from app.config import ConfigurationError
from app.infrastructure.observability.logging import get_logger
from app.models.api.auth_request import InitiateZkEmailRequest, VerifyZkEmailRequest
from app.models.api.auth_response import InitiateZkEmailResponse, VerifyZkEmailResponse
from app.services.ethereum_service import EthereumServiceError
from app.services.salt_policy import SaltRequiredError
from app.services.user_service import WalletAlreadyRegisteredError
from app.services.zk_email_service import (
    ProofRejectedError,
    SessionNotFoundError,
    initiate_zk_email_session,
    verify_zk_email_session,
)

router = APIRouter(prefix="/auth/zk-email", tags=["zk-email"])
logger = get_logger(__name__)


@router.post("/init", response_model=InitiateZkEmailResponse)
async def init(request: InitiateZkEmailRequest):
    """
    Start a verification session.

    Raises:
        400: Salt required by SALT_POLICY=explicit
    """
    try:
        session = await initiate_zk_email_session(
            email=str(request.email),
            owner_address=request.owner_address,
            salt=request.salt,
        )
    except SaltRequiredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return InitiateZkEmailResponse(**session.model_dump())


@router.post("/verify", response_model=VerifyZkEmailResponse)
async def verify(request: VerifyZkEmailRequest):
    """
    Verify a session's proof and onboard the user.

    Raises:
        401: Proof rejected by the verifier
        404: Unknown, expired or already consumed session
        409: Smart account already belongs to a profile
        502: Blockchain RPC failure
        503: Factory or verifier not configured
    """
    try:
        result = await verify_zk_email_session(
            session_id=request.session_id,
            proof=request.proof,
            nullifier=request.nullifier,
            user_op_hash=request.user_op_hash,
        )
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ProofRejectedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except ConfigurationError as e:
        logger.error("zk-email verification misconfigured", error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except WalletAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except EthereumServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Blockchain error: {e}"
        ) from e

    return VerifyZkEmailResponse(**result)
