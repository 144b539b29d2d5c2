"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ledger network settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Contract Ledger"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Client identity
    msp_id: str = Field(default="Org1MSP", alias="MSP_ID")

    # Endorsing peers as "address=MSPID" pairs
    endorsing_peers_str: str = Field(
        default="peer0.org1.example.com:7051=Org1MSP",
        alias="ENDORSING_PEERS",
    )

    @property
    def endorsing_peers(self) -> list[tuple[str, str]]:
        """Parse endorsing peers from string."""
        peers = []
        for entry in self.endorsing_peers_str.split(","):
            entry = entry.strip()
            if not entry:
                continue
            address, _, msp_id = entry.partition("=")
            peers.append((address.strip(), (msp_id or self.msp_id).strip()))
        return peers

    # Routing: channel and chaincode per deployed contract
    general_channel_name: str = "mychannel"
    general_chaincode_name: str = "gc"
    customer_channel_name: str = "customer"
    customer_chaincode_name: str = "customer"

    # Global overrides, as used in testing contexts
    chaincode_name_override: str | None = Field(default=None, alias="CHAINCODE_NAME")
    channel_name_override: str | None = Field(default=None, alias="CHANNEL_NAME")

    @property
    def general_route(self) -> tuple[str, str]:
        """(channel, chaincode) for general contracts and jobs."""
        return (
            self.channel_name_override or self.general_channel_name,
            self.chaincode_name_override or self.general_chaincode_name,
        )

    @property
    def customer_route(self) -> tuple[str, str]:
        """(channel, chaincode) for customers and mower SLAs."""
        return (
            self.channel_name_override or self.customer_channel_name,
            self.chaincode_name_override or self.customer_chaincode_name,
        )

    # Gateway timeouts (seconds)
    evaluate_timeout: float = Field(default=5.0, gt=0)
    endorse_timeout: float = Field(default=15.0, gt=0)
    submit_timeout: float = Field(default=5.0, gt=0)
    commit_status_timeout: float = Field(default=60.0, gt=0)

    # Orderer: delay before a submitted transaction is cut into a block
    batch_timeout: float = Field(default=0.0, ge=0)

    # Range scans are paged from the world state
    range_page_size: int = Field(default=100, ge=1, le=10_000)

    # Wire precision for decimal fields
    decimal_places: int = Field(default=6, ge=0, le=12)

    # SLA scoring policy
    sla_level_weights_str: str = Field(
        default="Bronze:1,Silver:2,Gold:3",
        alias="SLA_LEVEL_WEIGHTS",
    )
    sla_base_points: int = Field(default=100, ge=0)
    sla_precision_points: int = Field(default=100, ge=0)

    @property
    def sla_level_weights(self) -> dict[str, int]:
        """Parse service level weights from string."""
        weights = {}
        for entry in self.sla_level_weights_str.split(","):
            if not entry.strip():
                continue
            level, _, weight = entry.partition(":")
            weights[level.strip()] = int(weight)
        return weights

    # World state database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ledger.db",
        alias="DATABASE_URL",
    )
    database_echo: bool = False  # Log SQL queries

    @property
    def database_url_async(self) -> str:
        """Get async database URL (uses asyncpg for PostgreSQL)."""
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
