"""
Ethereum Service for smart-account derivation and zk-email proof checks.

Talks to two contracts over JSON-RPC:
- the account factory: getAddress (view) and createAccount (transaction),
  both taking (owner, kind, binanceWallet, emailCommitment, verifier, salt)
- the optional zk-email verifier: verifyProof (view)
"""

from typing import Any

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from app.config import ConfigurationError, settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import AccountDerivationParams, CreateAccountResult
from app.services.salt_policy import salt_to_int

logger = get_logger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20
ZERO_HASH = "0x" + "00" * 32

_FACTORY_INPUTS = [
    {"name": "owner", "type": "address"},
    {"name": "kind", "type": "uint8"},
    {"name": "binanceWallet", "type": "address"},
    {"name": "emailCommitment", "type": "bytes32"},
    {"name": "verifier", "type": "address"},
    {"name": "salt", "type": "uint256"},
]

EMAIL_AA_FACTORY_ABI = [
    {
        "type": "function",
        "name": "createAccount",
        "stateMutability": "nonpayable",
        "inputs": _FACTORY_INPUTS,
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "getAddress",
        "stateMutability": "view",
        "inputs": _FACTORY_INPUTS,
        "outputs": [{"name": "", "type": "address"}],
    },
]

ZK_EMAIL_VERIFIER_ABI = [
    {
        "type": "function",
        "name": "verifyProof",
        "stateMutability": "view",
        "inputs": [
            {"name": "proof", "type": "bytes"},
            {"name": "emailCommitment", "type": "bytes32"},
            {"name": "nullifier", "type": "bytes32"},
            {"name": "userOpHash", "type": "bytes32"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    }
]


class EthereumServiceError(Exception):
    """RPC failure, reverted transaction or receipt timeout."""

    def __init__(self, message: str, operation: str = "unknown", tx_hash: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.tx_hash = tx_hash


class EthereumService:
    """Read and write access to the account factory and the proof verifier."""

    def __init__(
        self,
        w3: AsyncWeb3 | None = None,
        *,
        factory_address: str | None = None,
        verifier_address: str | None = None,
        operator_key: str | None = None,
        allow_unverified_proofs: bool | None = None,
        receipt_timeout: float | None = None,
    ):
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(settings.ETHEREUM_RPC_URL))
        self.factory_address = factory_address or settings.EMAIL_AA_FACTORY_ADDRESS
        self.verifier_address = verifier_address or settings.ZK_EMAIL_VERIFIER_ADDRESS
        self.allow_unverified_proofs = (
            settings.ALLOW_UNVERIFIED_PROOFS
            if allow_unverified_proofs is None
            else allow_unverified_proofs
        )
        self.receipt_timeout = receipt_timeout or settings.TX_RECEIPT_TIMEOUT_SECONDS

        key = operator_key or settings.ETHEREUM_OPERATOR_KEY
        self.operator = Account.from_key(key) if key else None
        if self.operator is None:
            logger.warning("ETHEREUM_OPERATOR_KEY not configured; write operations disabled")

        if not self.verifier_address and self.allow_unverified_proofs:
            logger.warning(
                "ZK_EMAIL_VERIFIER_ADDRESS not configured and ALLOW_UNVERIFIED_PROOFS is on; "
                "every zk-email proof will be accepted"
            )

    @property
    def has_signer(self) -> bool:
        return self.operator is not None

    def assert_factory_configured(self) -> None:
        if not self.factory_address:
            raise ConfigurationError("EMAIL_AA_FACTORY_ADDRESS env var missing")

    def assert_signer_configured(self) -> None:
        if self.operator is None:
            raise ConfigurationError("ETHEREUM_OPERATOR_KEY not configured")

    def _factory_contract(self):
        self.assert_factory_configured()
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.factory_address),
            abi=EMAIL_AA_FACTORY_ABI,
        )

    def _verifier_contract(self):
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.verifier_address),
            abi=ZK_EMAIL_VERIFIER_ABI,
        )

    def factory_args(self, params: AccountDerivationParams) -> tuple[Any, ...]:
        """
        Normalise params into the factory argument tuple.

        Shared by predict and create so both see byte-identical inputs.
        """
        verifier = params.verifier_override or self.verifier_address or ZERO_ADDRESS
        return (
            AsyncWeb3.to_checksum_address(params.owner),
            int(params.kind),
            AsyncWeb3.to_checksum_address(params.binance_wallet or ZERO_ADDRESS),
            params.email_commitment or ZERO_HASH,
            AsyncWeb3.to_checksum_address(verifier),
            salt_to_int(params.salt),
        )

    async def predict_account_address(self, params: AccountDerivationParams) -> str:
        """Read-only getAddress call; no chain state changes."""
        factory = self._factory_contract()
        args = self.factory_args(params)
        return await self._get_address(factory, args)

    async def _get_address(self, factory, args: tuple[Any, ...]) -> str:
        try:
            address = await factory.functions.getAddress(*args).call()
        except Exception as e:
            logger.error("Factory getAddress call failed", error=str(e), error_type=type(e).__name__)
            raise EthereumServiceError(f"getAddress failed: {e}", operation="getAddress") from e

        logger.debug("Predicted account address", owner=args[0], kind=args[1], address=address)
        return address

    async def create_account(self, params: AccountDerivationParams) -> CreateAccountResult:
        """
        Send createAccount from the operator account and wait for inclusion.

        The resulting address is read back through getAddress with the same
        argument tuple rather than decoded from the transaction.
        """
        factory = self._factory_contract()
        self.assert_signer_configured()
        args = self.factory_args(params)

        tx_hash = None
        try:
            nonce = await self.w3.eth.get_transaction_count(self.operator.address, "pending")
            tx = await factory.functions.createAccount(*args).build_transaction(
                {"from": self.operator.address, "nonce": nonce}
            )
            signed = self.operator.sign_transaction(tx)
            tx_hash = AsyncWeb3.to_hex(await self.w3.eth.send_raw_transaction(signed.raw_transaction))

            logger.info("createAccount submitted", tx_hash=tx_hash, owner=args[0], kind=args[1])

            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            logger.error(
                "createAccount transaction failed",
                tx_hash=tx_hash,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EthereumServiceError(
                f"createAccount failed: {e}", operation="createAccount", tx_hash=tx_hash
            ) from e

        if receipt["status"] != 1:
            raise EthereumServiceError(
                "createAccount transaction reverted", operation="createAccount", tx_hash=tx_hash
            )

        account_address = await self._get_address(factory, args)

        logger.info(
            "Smart account created",
            account_address=account_address,
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
        )

        return CreateAccountResult(
            account_address=account_address,
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
        )

    async def verify_email_proof(
        self,
        proof: str,
        email_commitment: str,
        nullifier: str,
        user_op_hash: str,
    ) -> bool:
        """
        Check a zk-email proof against the verifier contract.

        Without a verifier address this only passes when ALLOW_UNVERIFIED_PROOFS
        is on; otherwise it is a configuration error rather than a silent accept.
        """
        if not self.verifier_address:
            if self.allow_unverified_proofs:
                logger.warning(
                    "Accepting zk-email proof without verification",
                    email_commitment=email_commitment,
                )
                return True
            raise ConfigurationError(
                "ZK_EMAIL_VERIFIER_ADDRESS not configured and ALLOW_UNVERIFIED_PROOFS is off"
            )

        contract = self._verifier_contract()
        try:
            result = await contract.functions.verifyProof(
                proof, email_commitment, nullifier, user_op_hash
            ).call()
        except Exception as e:
            logger.error("verifyProof call failed", error=str(e), error_type=type(e).__name__)
            raise EthereumServiceError(f"verifyProof failed: {e}", operation="verifyProof") from e

        return bool(result)

    async def is_connected(self) -> bool:
        try:
            return bool(await self.w3.is_connected())
        except Exception as e:
            logger.error("Ethereum RPC connectivity check failed", error=str(e))
            return False


ethereum_service = EthereumService()
