"""
zk-email onboarding.

Flow:
    1. initiate_session: store a pending session and hand back the commitment
       the client must prove against.
    2. verify_session: take the session (single use), check the proof,
       derive or create the NATIVE smart account, create the user profile and
       issue a bearer token.

If any step of verify_session fails before the profile exists, the session
is put back so the client can retry with the same session id.
"""

import uuid

from web3 import Web3

from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import AccountDerivationParams, WalletKind
from app.models.domain.session_domain import InitiatedSession, PendingSession
from app.models.domain.user_domain import CreateProfileInput
from app.services.ethereum_service import EthereumService, ethereum_service
from app.services.salt_policy import resolve_salt
from app.services.session_store import SessionStore, build_session_store
from app.services.smart_account_provider import SmartAccountProvider, account_provider
from app.services.token_service import TokenService, token_service
from app.services.user_service import UserRepository, user_repository

logger = get_logger(__name__)


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__("Session not found or expired")
        self.session_id = session_id


class ProofRejectedError(Exception):
    def __init__(self, session_id: str):
        super().__init__("Invalid zk-email proof")
        self.session_id = session_id


def compute_email_commitment(email: str, session_id: str, salt: str) -> str:
    """keccak256 of "email:session_id:salt" as 0x-prefixed hex."""
    return Web3.to_hex(Web3.keccak(text=f"{email}:{session_id}:{salt}"))


class ZkEmailService:
    def __init__(
        self,
        sessions: SessionStore,
        ethereum: EthereumService,
        accounts: SmartAccountProvider,
        users: UserRepository,
        tokens: TokenService,
    ):
        self.sessions = sessions
        self.ethereum = ethereum
        self.accounts = accounts
        self.users = users
        self.tokens = tokens

    async def initiate_session(
        self, email: str, owner_address: str, salt: str | None = None
    ) -> InitiatedSession:
        session_id = str(uuid.uuid4())
        salt = resolve_salt(salt)
        commitment = compute_email_commitment(email, session_id, salt)

        await self.sessions.put(
            PendingSession(
                id=session_id,
                owner_address=owner_address,
                email=email,
                email_commitment=commitment,
                salt=salt,
            )
        )

        logger.info("zk-email session initiated", session_id=session_id, owner=owner_address)
        return InitiatedSession(session_id=session_id, email_commitment=commitment, salt=salt)

    async def consume_session(self, session_id: str) -> PendingSession:
        """Atomically remove and return a pending session."""
        pending = await self.sessions.take(session_id)
        if pending is None:
            logger.warning("zk-email session not found", session_id=session_id)
            raise SessionNotFoundError(session_id)
        return pending

    async def verify_session(
        self, session_id: str, proof: str, nullifier: str, user_op_hash: str
    ) -> dict:
        pending = await self.consume_session(session_id)

        try:
            proof_is_valid = await self.ethereum.verify_email_proof(
                proof, pending.email_commitment, nullifier, user_op_hash
            )
            if not proof_is_valid:
                logger.warning("zk-email proof rejected", session_id=session_id)
                raise ProofRejectedError(session_id)

            wallet = await self.accounts.derive_or_create(
                AccountDerivationParams(
                    owner=pending.owner_address,
                    kind=WalletKind.NATIVE,
                    email_commitment=pending.email_commitment,
                    salt=pending.salt,
                )
            )

            user = await self.users.create_profile(
                CreateProfileInput(
                    type="NATIVE",
                    email_commitment=pending.email_commitment,
                    aa_wallet_address=wallet.address,
                    owner_address=pending.owner_address,
                    salt=pending.salt,
                )
            )
        except Exception:
            # Leave the session pending so the same id can be retried
            await self.sessions.put(pending)
            raise

        token = self.tokens.issue_token(user.id, user.type, wallet.address)

        logger.info(
            "zk-email session verified",
            session_id=session_id,
            user_id=user.id,
            aa_wallet_address=wallet.address,
            account_created=wallet.created,
        )

        return {
            "aa_wallet_address": wallet.address,
            "email_commitment": pending.email_commitment,
            "token": token,
            "user_id": user.id,
        }


zk_email_service = ZkEmailService(
    sessions=build_session_store(),
    ethereum=ethereum_service,
    accounts=account_provider,
    users=user_repository,
    tokens=token_service,
)


async def initiate_zk_email_session(email: str, owner_address: str, salt: str | None = None):
    return await zk_email_service.initiate_session(email, owner_address, salt)


async def verify_zk_email_session(session_id: str, proof: str, nullifier: str, user_op_hash: str):
    return await zk_email_service.verify_session(session_id, proof, nullifier, user_op_hash)
