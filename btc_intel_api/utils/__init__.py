"""API utilities."""

from btc_intel_api.utils.logging import setup_logging
from btc_intel_api.utils.metrics import metrics, setup_metrics

__all__ = ["setup_logging", "metrics", "setup_metrics"]
