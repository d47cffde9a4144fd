"""Query and analytics services."""

from btc_intel_api.services.analytics import AnalyticsService, InMemoryPaymentTracker
from btc_intel_api.services.query_handlers import ProviderSet, build_query_handlers

__all__ = ["AnalyticsService", "InMemoryPaymentTracker", "ProviderSet", "build_query_handlers"]
