"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from payout.config.rank_tiers import MAX_REFERRAL_DEPTH, TESTNET_NETWORK_SCALE

# Substrings that mark a deposit network as a test network
TESTNET_MARKERS = ("test", "sepolia", "goerli")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (Dramatiq broker and distribution lock)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/payout.log"

    # Network: rank thresholds are scaled down on test networks
    deposit_network: str = Field(
        default="BSC Mainnet",
        description="Deposit network name; test networks use scaled thresholds",
    )
    network_scale: Decimal | None = Field(
        default=None,
        gt=0,
        description="Explicit balance multiplier for rank resolution (overrides network detection)",
    )

    # Distribution
    max_referral_depth: int = Field(
        default=MAX_REFERRAL_DEPTH,
        ge=1,
        le=MAX_REFERRAL_DEPTH,
        description="Maximum referrer hops walked per source user",
    )
    row_update_retries: int = Field(
        default=3,
        ge=1,
        description="Compare-and-set attempts per balance update before giving up",
    )
    distribution_lock_timeout: int = Field(
        default=3600,
        gt=0,
        description="Distribution lock TTL in seconds",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(("postgresql", "sqlite")):
            raise ValueError(
                "DATABASE_URL must be a postgresql:// or sqlite:// URL"
            )
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                logger.warning(
                    "DATABASE_URL points to SQLite in production; "
                    "row locking is not available on SQLite."
                )
            if self.get_network_scale() != 1:
                raise ValueError(
                    f"Rank thresholds are scaled by {self.get_network_scale()} "
                    f"(deposit network '{self.deposit_network}') in production "
                    "environment. Set DEPOSIT_NETWORK to a mainnet or NETWORK_SCALE=1."
                )
        return self

    @property
    def is_testnet(self) -> bool:
        """Whether the configured deposit network is a test network."""
        network = self.deposit_network.lower()
        return any(marker in network for marker in TESTNET_MARKERS)

    def get_network_scale(self) -> Decimal:
        """Balance multiplier used by rank resolution."""
        if self.network_scale is not None:
            return self.network_scale
        return TESTNET_NETWORK_SCALE if self.is_testnet else Decimal("1")


# Global settings instance
settings = Settings()
