"""Pytest configuration and fixtures for Bitcoin Intel tests."""

import copy
import pytest
from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx
from fastapi.testclient import TestClient

from btc_intel.core.upstream import UpstreamFetcher
from btc_intel.models.config import ProviderConfig
from btc_intel.utils.time import fixed_clock
from btc_intel_api.app.main import create_app
from btc_intel_api.app.runtime import build_runtime
from btc_intel_api.config.settings import APISettings
from btc_intel_api.services.analytics import InMemoryPaymentTracker

MEMPOOL = "https://mempool.space/api"
BLOCKCHAIR = "https://api.blockchair.com/bitcoin"
TICKER = "https://blockchain.info/ticker"

ADDRESS = "bc1qtest"
TXID = "d" * 64

# 2024-01-15T12:30:00Z
CAPTURE_TIME = datetime(2024, 1, 15, 12, 30, 0, tzinfo=timezone.utc)


# ============================================================================
# UPSTREAM MOCKING
# ============================================================================

class UpstreamRouter:
    """
    Routes mock-transport requests by full URL.

    A route is a JSON payload, an ``httpx.Response`` or an exception instance
    raised from the transport. Unrouted URLs answer 404.
    """

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, result: Any) -> None:
        self.routes[url] = result

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.routes.get(str(request.url))
        if result is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(result, Exception):
            raise result
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=copy.deepcopy(result))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]


# ============================================================================
# SAMPLE UPSTREAM PAYLOADS
# ============================================================================

@pytest.fixture
def fees_payload():
    return {
        "fastestFee": 25,
        "halfHourFee": 20,
        "hourFee": 15,
        "economyFee": 8,
        "minimumFee": 4,
    }


@pytest.fixture
def mempool_payload():
    return {
        "count": 45000,
        "vsize": 23456789,
        "total_fee": 12345678,
        "fee_histogram": [],
    }


@pytest.fixture
def blocks_payload():
    """Three blocks, newest first, 10 and 15 minutes apart."""
    return [
        {
            "id": "0000000000000000000300aa",
            "height": 830002,
            "timestamp": 1705320000,  # 2024-01-15T12:00:00Z
            "tx_count": 3000,
            "size": 1500000,
            "weight": 3993000,
            "extras": {
                "pool": {"name": "Foundry USA"},
                "reward": 650000000,
                "totalFees": 25000000,
            },
        },
        {
            "id": "0000000000000000000200bb",
            "height": 830001,
            "timestamp": 1705319400,
            "tx_count": 2500,
            "size": 1200000,
            "weight": 3990000,
            "extras": {
                "pool": {"name": "AntPool"},
                "reward": 640000000,
                "totalFees": 15000000,
            },
        },
        {
            "id": "0000000000000000000100cc",
            "height": 830000,
            "timestamp": 1705318500,
            "tx_count": 2000,
            "size": 1000000,
            "weight": 3900000,
        },
    ]


@pytest.fixture
def stats_payload():
    return {
        "data": {
            "difficulty": 72006146478567.1,
            "hashrate_24h": "520000000000000000000",
            "mempool_transactions": 45210,
            "mempool_size": 98765432,
            "market_price_usd": 42500.5,
        },
        "context": {"code": 200},
    }


@pytest.fixture
def address_payload():
    return {
        "address": ADDRESS,
        "chain_stats": {
            "funded_txo_count": 4,
            "funded_txo_sum": 500000000,
            "spent_txo_count": 2,
            "spent_txo_sum": 200000000,
            "tx_count": 5,
        },
        "mempool_stats": {
            "funded_txo_count": 1,
            "funded_txo_sum": 10000,
            "spent_txo_count": 0,
            "spent_txo_sum": 0,
            "tx_count": 1,
        },
    }


@pytest.fixture
def address_txs_payload():
    """Incoming confirmed, outgoing confirmed (old), incoming unconfirmed."""
    return [
        {
            "txid": "a" * 64,
            "status": {"confirmed": True, "block_height": 829990, "block_time": 1705310000},
            "vin": [{"prevout": {"scriptpubkey_address": "bc1qother", "value": 150000000}}],
            "vout": [
                {"scriptpubkey_address": ADDRESS, "value": 100000000},
                {"scriptpubkey_address": "bc1qother", "value": 49990000},
            ],
        },
        {
            "txid": "b" * 64,
            "status": {"confirmed": True, "block_height": 800000, "block_time": 1690000000},
            "vin": [{"prevout": {"scriptpubkey_address": ADDRESS, "value": 200000000}}],
            "vout": [
                {"scriptpubkey_address": "bc1qdest", "value": 150000000},
                {"scriptpubkey_address": ADDRESS, "value": 49000000},
            ],
        },
        {
            "txid": "c" * 64,
            "status": {"confirmed": False},
            "vin": [{"prevout": {"scriptpubkey_address": "bc1qx", "value": 20000}}],
            "vout": [{"scriptpubkey_address": ADDRESS, "value": 10000}],
        },
    ]


@pytest.fixture
def tx_payload():
    """Two inputs (one without prevout), an OP_RETURN output without address."""
    return {
        "txid": TXID,
        "status": {"confirmed": True, "block_height": 830000, "block_time": 1705318500},
        "size": 225,
        "weight": 561,
        "fee": 2829,
        "vin": [
            {"prevout": {"scriptpubkey_address": "bc1qin", "value": 100000}},
            {"is_coinbase": False, "prevout": None},
        ],
        "vout": [
            {"scriptpubkey_address": "bc1qout", "value": 90000},
            {"scriptpubkey_type": "op_return", "value": 0},
            {"scriptpubkey_address": "bc1qchange", "value": 7180},
        ],
    }


@pytest.fixture
def ticker_payload():
    return {
        "USD": {"15m": 42000.0, "last": 42000.0, "buy": 42000.0, "sell": 42000.0, "symbol": "$"},
        "EUR": {"15m": 38500.0, "last": 38500.0, "buy": 38500.0, "sell": 38500.0, "symbol": "€"},
    }


# ============================================================================
# COMPONENT FIXTURES
# ============================================================================

@pytest.fixture
def router(fees_payload, mempool_payload, blocks_payload, stats_payload,
           address_payload, address_txs_payload, tx_payload, ticker_payload):
    """Router preloaded with a healthy snapshot of every provider."""
    router = UpstreamRouter()
    router.add(f"{MEMPOOL}/v1/fees/recommended", fees_payload)
    router.add(f"{MEMPOOL}/mempool", mempool_payload)
    router.add(f"{MEMPOOL}/v1/blocks", blocks_payload)
    router.add(f"{MEMPOOL}/address/{ADDRESS}", address_payload)
    router.add(f"{MEMPOOL}/address/{ADDRESS}/txs", address_txs_payload)
    router.add(f"{MEMPOOL}/tx/{TXID}", tx_payload)
    router.add(f"{BLOCKCHAIR}/stats", stats_payload)
    router.add(TICKER, ticker_payload)
    return router


@pytest.fixture
def upstream_results():
    """Collected ``(provider, outcome)`` pairs from the fetcher hook."""
    return []


@pytest.fixture
def fetcher(router, upstream_results):
    client = httpx.AsyncClient(transport=router.transport)
    return UpstreamFetcher(client=client,
                           on_result=lambda provider, outcome: upstream_results.append((provider, outcome)))


@pytest.fixture
def clock():
    return fixed_clock(CAPTURE_TIME)


@pytest.fixture
def settings():
    return APISettings(log_level="WARNING", log_format="text", enable_metrics=True)


@pytest.fixture
def payment_tracker(clock):
    return InMemoryPaymentTracker(clock=clock)


@pytest.fixture
def runtime(settings, fetcher, clock, payment_tracker):
    return build_runtime(settings=settings,
                         provider_config=ProviderConfig(),
                         fetcher=fetcher,
                         clock=clock,
                         payment_tracker=payment_tracker)


@pytest.fixture
def client(runtime):
    """TestClient over an app wired to the mock transport."""
    with TestClient(create_app(runtime)) as test_client:
        yield test_client
