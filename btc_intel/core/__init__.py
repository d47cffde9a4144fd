"""Core aggregation components."""

from btc_intel.core.aggregator import ConcurrentAggregator, FailurePolicy, Source, isolated
from btc_intel.core.classifier import AddressClassifier
from btc_intel.core.normalizer import DomainNormalizer
from btc_intel.core.providers import BlockchainInfoTickerClient, BlockchairClient, MempoolSpaceClient
from btc_intel.core.upstream import UpstreamFetcher

__all__ = [
    "ConcurrentAggregator",
    "FailurePolicy",
    "Source",
    "isolated",
    "AddressClassifier",
    "DomainNormalizer",
    "BlockchainInfoTickerClient",
    "BlockchairClient",
    "MempoolSpaceClient",
    "UpstreamFetcher",
]
