"""
Bitcoin Intelligence Core

Fans out concurrent requests to public Bitcoin data providers, tolerates
partial failure, and normalizes the responses into one domain model.
"""

__version__ = "1.0.0"
__description__ = "Aggregation and normalization core for Bitcoin network queries"

from btc_intel.core.aggregator import ConcurrentAggregator, FailurePolicy, Source
from btc_intel.core.classifier import AddressClassifier
from btc_intel.core.errors import IntelError, NormalizationError, UpstreamError
from btc_intel.core.normalizer import DomainNormalizer
from btc_intel.core.upstream import UpstreamFetcher
from btc_intel.models.config import ProviderConfig

__all__ = [
    "ConcurrentAggregator",
    "FailurePolicy",
    "Source",
    "AddressClassifier",
    "IntelError",
    "NormalizationError",
    "UpstreamError",
    "DomainNormalizer",
    "UpstreamFetcher",
    "ProviderConfig",
]
