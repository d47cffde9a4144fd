"""
Provider clients for Bitcoin blockchain data.

Each client only knows its provider's URL layout; the HTTP call itself goes
through the shared UpstreamFetcher so every provider fails the same way.

API Documentation:
- https://mempool.space/docs/api
- https://blockchair.com/api/docs
- https://www.blockchain.com/explorer/api
"""

from typing import Any, Dict, List
from urllib.parse import quote

import structlog

from btc_intel.core.upstream import UpstreamFetcher

logger = structlog.get_logger(__name__)


class MempoolSpaceClient:
    """
    Mempool.space API client - FREE, no API key required.

    Source of fee recommendations, mempool summary, recent blocks, address
    lookups, address history and transaction detail.
    """

    NAME = "mempool.space"
    BASE_URL = "https://mempool.space/api"

    def __init__(self, fetcher: UpstreamFetcher, base_url: str = None):
        self.fetcher = fetcher
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def _get(self, endpoint: str) -> Any:
        return await self.fetcher.get_json(f"{self.base_url}{endpoint}", provider=self.NAME)

    # ==================== Fee Estimation ====================

    async def get_recommended_fees(self) -> Dict[str, Any]:
        """
        Get recommended transaction fees.

        Returns:
            {
                "fastestFee": 20,      # Next block
                "halfHourFee": 15,     # ~3 blocks
                "hourFee": 10,         # ~6 blocks
                "economyFee": 5,       # ~12 blocks
                "minimumFee": 1        # Minimum relay fee
            }
        """
        return await self._get("/v1/fees/recommended")

    # ==================== Mempool Methods ====================

    async def get_mempool_info(self) -> Dict[str, Any]:
        """
        Get mempool statistics.

        Returns:
            {
                "count": 5000,
                "vsize": 3000000,
                "total_fee": 10000000,
                "fee_histogram": [...]
            }
        """
        return await self._get("/mempool")

    # ==================== Block Methods ====================

    async def get_blocks(self) -> List[Dict[str, Any]]:
        """Get the most recent blocks, newest first."""
        return await self._get("/v1/blocks")

    # ==================== Address Methods ====================

    async def get_address(self, address: str) -> Dict[str, Any]:
        """
        Get address information.

        Returns:
            {
                "address": "...",
                "chain_stats": {
                    "funded_txo_count": 10,
                    "funded_txo_sum": 1000000000,
                    "spent_txo_count": 5,
                    "spent_txo_sum": 500000000,
                    "tx_count": 15
                },
                "mempool_stats": {...}
            }
        """
        return await self._get(f"/address/{quote(address, safe='')}")

    async def get_address_txs(self, address: str) -> List[Dict[str, Any]]:
        """Get address transactions, newest first."""
        return await self._get(f"/address/{quote(address, safe='')}/txs")

    # ==================== Transaction Methods ====================

    async def get_transaction(self, txid: str) -> Dict[str, Any]:
        """Get transaction by ID."""
        return await self._get(f"/tx/{quote(txid, safe='')}")


class BlockchairClient:
    """Blockchair network statistics (difficulty, hashrate, mempool aggregate, price)."""

    NAME = "blockchair.com"
    BASE_URL = "https://api.blockchair.com/bitcoin"

    def __init__(self, fetcher: UpstreamFetcher, base_url: str = None):
        self.fetcher = fetcher
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def get_stats(self) -> Dict[str, Any]:
        """
        Get network statistics.

        Returns:
            {
                "data": {
                    "difficulty": 83148355189239.77,
                    "hashrate_24h": "602002749463478956032",
                    "mempool_transactions": 41234,
                    "mempool_size": 22345678,
                    "market_price_usd": 67000.12,
                    ...
                }
            }
        """
        return await self.fetcher.get_json(f"{self.base_url}/stats", provider=self.NAME)


class BlockchainInfoTickerClient:
    """Blockchain.info spot price ticker."""

    NAME = "blockchain.info"
    TICKER_URL = "https://blockchain.info/ticker"

    def __init__(self, fetcher: UpstreamFetcher, ticker_url: str = None):
        self.fetcher = fetcher
        self.ticker_url = ticker_url or self.TICKER_URL

    async def get_ticker(self) -> Dict[str, Any]:
        """
        Get spot prices keyed by currency.

        Returns:
            {"USD": {"15m": 67000.0, "last": 67000.0, "buy": ..., "sell": ..., "symbol": "$"}, ...}
        """
        return await self.fetcher.get_json(self.ticker_url, provider=self.NAME)
