"""Configuration settings for the Bitcoin Intel API."""

from typing import List, Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class APISettings(BaseSettings):
    """API configuration settings."""

    # Agent identity
    agent_name: str = Field(default="bitcoin-intel", description="Agent name")
    agent_version: str = Field(default="1.0.0", description="Agent version")
    agent_description: str = Field(
        default="Bitcoin blockchain intelligence - wallet lookups, transaction details, fees, and network stats",
        description="Agent description"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # CORS
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    cors_methods: List[str] = Field(default=["GET", "POST"], description="CORS allowed methods")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Monitoring Configuration
    enable_metrics: bool = Field(default=True, description="Enable Prometheus metrics")
    metrics_path: str = Field(default="/metrics", description="Metrics endpoint path")

    # Entrypoint prices (minor currency units)
    price_overview: int = Field(default=0, ge=0, description="Network overview price")
    price_address: int = Field(default=1000, ge=0, description="Address lookup price")
    price_transaction: int = Field(default=2000, ge=0, description="Transaction details price")
    price_fees: int = Field(default=2000, ge=0, description="Fee estimates price")
    price_blocks: int = Field(default=3000, ge=0, description="Recent blocks price")
    price_address_report: int = Field(default=5000, ge=0, description="Address report price")

    # Analytics
    enable_analytics: bool = Field(default=True, description="Record payment events for analytics")
    analytics_default_limit: int = Field(default=50, gt=0, description="Default analytics transaction limit")
    analytics_max_events: int = Field(default=10_000, gt=0, description="Payment events kept in memory")

    # Registration document
    public_domain: Optional[str] = Field(default=None, description="Public domain of the deployment")
    default_base_url: str = Field(
        default="https://bitcoin-intel-production.up.railway.app",
        description="Base URL used when no public domain is set"
    )
    icon_path: str = Field(default="icon.png", description="Icon file served at /icon.png")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = "BTC_INTEL_API_"
        extra = "ignore"

    @validator('log_level')
    def validate_log_level(cls, v):
        """Validate log level is a standard level name."""
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Validate log format."""
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()

    @property
    def base_url(self) -> str:
        """Public base URL of this deployment."""
        if self.public_domain:
            return f"https://{self.public_domain}"
        return self.default_base_url
