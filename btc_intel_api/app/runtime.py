"""Composition of the core components into a runnable set of entrypoints."""

from dataclasses import dataclass
from typing import Optional

import structlog

from btc_intel.core.aggregator import ConcurrentAggregator
from btc_intel.core.classifier import AddressClassifier
from btc_intel.core.normalizer import DomainNormalizer
from btc_intel.core.providers import (
    BlockchainInfoTickerClient,
    BlockchairClient,
    MempoolSpaceClient,
)
from btc_intel.core.upstream import UpstreamFetcher
from btc_intel.models.config import ProviderConfig
from btc_intel.utils.time import Clock, get_current_utc
from btc_intel_api.app.registry import EntrypointRegistry
from btc_intel_api.config.settings import APISettings
from btc_intel_api.schemas.inputs import AnalyticsInput, AnalyticsTransactionsInput
from btc_intel_api.services.analytics import AnalyticsService, InMemoryPaymentTracker, PaymentTracker
from btc_intel_api.services.query_handlers import ProviderSet, build_query_handlers
from btc_intel_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)


@dataclass
class AgentRuntime:
    """Everything a running service owns."""
    settings: APISettings
    registry: EntrypointRegistry
    fetcher: UpstreamFetcher
    payment_tracker: Optional[PaymentTracker] = None

    async def aclose(self) -> None:
        await self.fetcher.aclose()


def build_runtime(settings: Optional[APISettings] = None,
                  provider_config: Optional[ProviderConfig] = None,
                  fetcher: Optional[UpstreamFetcher] = None,
                  clock: Clock = get_current_utc,
                  payment_tracker: Optional[PaymentTracker] = None) -> AgentRuntime:
    """
    Build the fetcher, core components and registry.

    Every collaborator is constructed here and passed down explicitly; tests
    substitute the fetcher (mock transport), the clock and the recorder.
    """
    settings = settings or APISettings()
    provider_config = provider_config or ProviderConfig()

    if fetcher is None:
        fetcher = UpstreamFetcher(user_agent=provider_config.user_agent,
                                  on_result=metrics.record_upstream)

    providers = ProviderSet(
        mempool=MempoolSpaceClient(fetcher, provider_config.mempool_api_url),
        blockchair=BlockchairClient(fetcher, provider_config.blockchair_api_url),
        ticker=BlockchainInfoTickerClient(fetcher, provider_config.ticker_url),
    )
    classifier = AddressClassifier(
        active_tx_threshold=provider_config.active_tx_threshold,
        whale_threshold_sats=provider_config.whale_threshold_sats,
        recent_window_seconds=provider_config.recent_activity_window_seconds,
    )

    if payment_tracker is None and settings.enable_analytics:
        payment_tracker = InMemoryPaymentTracker(max_events=settings.analytics_max_events, clock=clock)

    registry = EntrypointRegistry(payment_tracker=payment_tracker)

    prices = {
        "overview": settings.price_overview,
        "address": settings.price_address,
        "transaction": settings.price_transaction,
        "fees": settings.price_fees,
        "blocks": settings.price_blocks,
        "address-report": settings.price_address_report,
    }
    handlers = build_query_handlers(
        providers=providers,
        aggregator=ConcurrentAggregator(),
        normalizer=DomainNormalizer(),
        classifier=classifier,
        clock=clock,
    )
    for handler in handlers:
        registry.add_entrypoint(
            key=handler.key,
            description=handler.description,
            input_model=handler.input_model,
            price=prices[handler.key],
            handler=handler,
        )

    analytics = AnalyticsService(payment_tracker, default_limit=settings.analytics_default_limit)
    registry.add_entrypoint("analytics", "Payment analytics summary",
                            AnalyticsInput, 0, analytics.summary)
    registry.add_entrypoint("analytics-transactions", "Recent payment transactions",
                            AnalyticsTransactionsInput, 0, analytics.transactions)
    registry.add_entrypoint("analytics-csv", "Payment transactions as CSV",
                            AnalyticsInput, 0, analytics.csv)

    logger.info("Runtime built",
                entrypoints=[entrypoint.key for entrypoint in registry.list()],
                analytics_enabled=payment_tracker is not None)

    return AgentRuntime(settings=settings, registry=registry,
                        fetcher=fetcher, payment_tracker=payment_tracker)
