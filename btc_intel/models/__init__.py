"""Domain models and configuration."""

from btc_intel.models.config import ProviderConfig
from btc_intel.models.domain import (
    AddressActivity,
    AddressBalance,
    AddressClassification,
    AddressReport,
    AddressTransaction,
    BlockSummary,
    FeeEstimateReport,
    FeeTiers,
    MempoolSummary,
    NetworkSnapshot,
    NetworkStats,
    TransactionDetail,
)

__all__ = [
    "ProviderConfig",
    "AddressActivity",
    "AddressBalance",
    "AddressClassification",
    "AddressReport",
    "AddressTransaction",
    "BlockSummary",
    "FeeEstimateReport",
    "FeeTiers",
    "MempoolSummary",
    "NetworkSnapshot",
    "NetworkStats",
    "TransactionDetail",
]
