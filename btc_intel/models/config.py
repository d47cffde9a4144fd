"""Provider and classification configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings


class ProviderConfig(BaseSettings):
    """Configuration for upstream data providers."""

    # ==================== Provider URLs ====================
    mempool_api_url: str = Field(
        default="https://mempool.space/api",
        description="Mempool.space API base URL"
    )
    blockchair_api_url: str = Field(
        default="https://api.blockchair.com/bitcoin",
        description="Blockchair Bitcoin API base URL"
    )
    ticker_url: str = Field(
        default="https://blockchain.info/ticker",
        description="Spot price ticker URL"
    )
    user_agent: str = Field(default="bitcoin-intel/1.0.0", description="User-Agent for upstream calls")

    # ==================== Classification ====================
    active_tx_threshold: int = Field(default=10, ge=0, description="Tx count above which an address is active")
    whale_threshold_sats: int = Field(default=100_000_000_000, ge=0, description="Confirmed balance above which an address is a whale")
    recent_activity_window_seconds: int = Field(default=86_400 * 30, gt=0, description="Recency window for activity")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = "BTC_INTEL_"
        extra = "ignore"
