from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing at first use."""


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Auth token settings
    JWT_SECRET: str
    JWT_TTL_SECONDS: int = 3600

    # Ethereum settings
    ETHEREUM_RPC_URL: str
    EMAIL_AA_FACTORY_ADDRESS: str | None = None
    ZK_EMAIL_VERIFIER_ADDRESS: str | None = None
    ETHEREUM_OPERATOR_KEY: str | None = None
    TX_RECEIPT_TIMEOUT_SECONDS: float = 120.0

    # Accept any proof when no verifier contract is configured (development only)
    ALLOW_UNVERIFIED_PROOFS: bool = False

    # "timestamp" falls back to the current time in ms, "explicit" requires a salt
    SALT_POLICY: Literal["timestamp", "explicit"] = "timestamp"

    SMART_ACCOUNT_PROVIDER: Literal["factory", "predict_only"] = "factory"

    # Pending zk-email sessions
    SESSION_STORE_BACKEND: Literal["memory", "redis"] = "memory"
    SESSION_TTL_SECONDS: int = 900  # 0 disables expiry
    REDIS_URL: str | None = None

    # User profiles
    USER_STORE_BACKEND: Literal["memory", "postgres"] = "memory"
    DATABASE_URL: str | None = None

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    # Binance settings
    BINANCE_API_URL: str = "https://api.binance.com"
    BINANCE_RECV_WINDOW_MS: int = 5000

    # Feed polling
    STABILITY_FEED_URL: str | None = None
    STABILITY_POLL_INTERVAL_SECONDS: float = 7.0
    AIRDROP_FEED_URL: str | None = None
    AIRDROP_POLL_INTERVAL_SECONDS: float | None = None

    # Proxy settings for client IP extraction
    TRUST_X_FORWARDED_FOR: bool = False
    TRUSTED_PROXY_IPS: list[str] = []

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def session_ttl(self) -> int | None:
        """Session TTL in seconds, or None when expiry is disabled."""
        return self.SESSION_TTL_SECONDS if self.SESSION_TTL_SECONDS > 0 else None

    def require_redis_url(self) -> str:
        if not self.REDIS_URL:
            raise ConfigurationError("REDIS_URL env var missing")
        return self.REDIS_URL

    def require_database_url(self) -> str:
        if not self.DATABASE_URL:
            raise ConfigurationError("DATABASE_URL env var missing")
        return self.DATABASE_URL

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            config.update({"min_size": 1, "max_size": 4, "timeout": 15.0})

        return config


settings = Settings()
