"""Onboarding for users linking an existing Binance wallet (BINANCE_SHADOW accounts)."""

from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import AccountDerivationParams, WalletKind
from app.models.domain.user_domain import CreateProfileInput
from app.services.binance_service import BinanceService, binance_service
from app.services.salt_policy import resolve_salt
from app.services.smart_account_provider import SmartAccountProvider, account_provider
from app.services.token_service import TokenService, token_service
from app.services.user_service import UserRepository, user_repository

logger = get_logger(__name__)


class BinanceAuthService:
    def __init__(
        self,
        binance: BinanceService,
        accounts: SmartAccountProvider,
        users: UserRepository,
        tokens: TokenService,
    ):
        self.binance = binance
        self.accounts = accounts
        self.users = users
        self.tokens = tokens

    async def onboard(
        self,
        api_key: str,
        api_secret: str,
        binance_wallet_address: str,
        owner_address: str,
        salt: str | None = None,
    ) -> dict:
        # Fails fast on bad credentials before anything touches the chain
        summary = await self.binance.fetch_wallet_summary(api_key, api_secret)
        salt = resolve_salt(salt)

        wallet = await self.accounts.derive_or_create(
            AccountDerivationParams(
                owner=owner_address,
                kind=WalletKind.BINANCE_SHADOW,
                binance_wallet=binance_wallet_address,
                salt=salt,
            )
        )

        user = await self.users.create_profile(
            CreateProfileInput(
                type="BINANCE_SHADOW",
                binance_wallet=binance_wallet_address,
                aa_wallet_address=wallet.address,
                owner_address=owner_address,
                salt=salt,
            )
        )

        token = self.tokens.issue_token(user.id, user.type, wallet.address)

        logger.info(
            "Binance wallet onboarded",
            user_id=user.id,
            aa_wallet_address=wallet.address,
            balance_count=len(summary.balances),
            account_created=wallet.created,
        )

        return {
            "aa_wallet_address": wallet.address,
            "binance_wallet_address": binance_wallet_address,
            "balances": summary.balances,
            "token": token,
            "user_id": user.id,
        }


binance_auth_service = BinanceAuthService(
    binance=binance_service,
    accounts=account_provider,
    users=user_repository,
    tokens=token_service,
)


async def onboard_binance_wallet(
    api_key: str,
    api_secret: str,
    binance_wallet_address: str,
    owner_address: str,
    salt: str | None = None,
) -> dict:
    return await binance_auth_service.onboard(
        api_key, api_secret, binance_wallet_address, owner_address, salt
    )
