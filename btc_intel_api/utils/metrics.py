"""Prometheus metrics for the Bitcoin Intel API."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import FastAPI, Response


class Metrics:
    """Prometheus metrics collection."""

    def __init__(self):
        # Request metrics
        self.request_count = Counter(
            'bitcoin_intel_requests_total',
            'Total number of API requests',
            ['method', 'endpoint', 'status']
        )

        self.request_duration = Histogram(
            'bitcoin_intel_request_duration_seconds',
            'Request duration in seconds',
            ['method', 'endpoint']
        )

        # Query metrics
        self.query_count = Counter(
            'bitcoin_intel_queries_total',
            'Entrypoint invocations by outcome',
            ['entrypoint', 'status']
        )

        self.query_duration = Histogram(
            'bitcoin_intel_query_duration_seconds',
            'Entrypoint handler duration in seconds',
            ['entrypoint']
        )

        # Upstream metrics
        self.upstream_requests = Counter(
            'bitcoin_intel_upstream_requests_total',
            'Upstream provider calls by outcome',
            ['provider', 'outcome']
        )

    def record_upstream(self, provider: str, outcome: str) -> None:
        """Fetcher result hook."""
        self.upstream_requests.labels(provider=provider, outcome=outcome).inc()


# Global metrics instance
metrics = Metrics()


def setup_metrics(app: FastAPI, path: str = "/metrics"):
    """Setup metrics endpoint."""

    @app.get(path, include_in_schema=False)
    async def get_metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )
