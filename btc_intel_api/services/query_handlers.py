"""
Query handlers, one per public entrypoint.

Each handler is a linear pipeline with a single fan-out point:

    validated input -> ConcurrentAggregator -> DomainNormalizer
                    -> AddressClassifier (address-report only) -> output dict

Capture time is read once per invocation from the injected clock and reused
for ``fetchedAt`` and for every recency comparison.
"""

from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Any, Dict, List, Type

from pydantic import BaseModel

from btc_intel.core.aggregator import ConcurrentAggregator, isolated
from btc_intel.core.classifier import AddressClassifier
from btc_intel.core.errors import NormalizationError
from btc_intel.core.normalizer import DomainNormalizer
from btc_intel.core.providers import (
    BlockchainInfoTickerClient,
    BlockchairClient,
    MempoolSpaceClient,
)
from btc_intel.models.domain import (
    AddressReport,
    AddressTransaction,
    BlockSummary,
    FeeEstimateReport,
    NetworkSnapshot,
    TransactionDetail,
)
from btc_intel.utils.time import Clock, get_current_utc, to_iso, unix_to_iso
from btc_intel.utils.units import (
    format_btc,
    format_fixed,
    format_number,
    megabytes,
    round_half_up,
    usd_value,
)
from btc_intel_api.schemas.inputs import (
    AddressInput,
    BlocksInput,
    EmptyInput,
    TransactionInput,
)

FEE_SAMPLE_BLOCKS = 6
DEFAULT_BLOCK_MINUTES = Decimal("10")
REFERENCE_TX_VBYTES = 225

DEFAULT_BLOCK_LIMIT = 10
MIN_BLOCK_LIMIT = 1
MAX_BLOCK_LIMIT = 15

RECENT_TRANSACTIONS = 10

FEE_TIER_MINUTES = {
    "fastest": 10,
    "halfHour": 30,
    "hour": 60,
    "economy": 120,
    "minimum": "variable",
}


@dataclass
class ProviderSet:
    """Upstream provider clients shared by the handlers."""
    mempool: MempoolSpaceClient
    blockchair: BlockchairClient
    ticker: BlockchainInfoTickerClient

    @property
    def overview_sources(self) -> List[str]:
        return [self.mempool.NAME, self.blockchair.NAME]


def clamp_block_limit(limit) -> int:
    """Default 10, clamped into [1, 15]."""
    if limit is None:
        return DEFAULT_BLOCK_LIMIT
    return max(MIN_BLOCK_LIMIT, min(limit, MAX_BLOCK_LIMIT))


def average_block_minutes(blocks: List[BlockSummary]) -> Decimal:
    """
    Mean inter-block time of newest-first ``blocks`` in minutes.

    Falls back to 10 minutes when fewer than two blocks were sampled.
    """
    if len(blocks) < 2:
        return DEFAULT_BLOCK_MINUTES
    span = blocks[0].timestamp - blocks[-1].timestamp
    return Decimal(span) / Decimal(len(blocks) - 1) / Decimal(60)


def _half_up_int(numerator: int, denominator: int) -> int:
    return int(round_half_up(Decimal(numerator) / Decimal(denominator), 0))


class QueryHandler:
    """Base class: subclasses set ``key``, ``description``, ``input_model`` and implement ``handle``."""

    key: str = ""
    description: str = ""
    input_model: Type[BaseModel] = EmptyInput

    def __init__(self,
                 providers: ProviderSet,
                 aggregator: ConcurrentAggregator,
                 normalizer: DomainNormalizer,
                 clock: Clock = get_current_utc):
        self.providers = providers
        self.aggregator = aggregator
        self.normalizer = normalizer
        self.clock = clock

    async def __call__(self, params: BaseModel) -> Dict[str, Any]:
        return await self.handle(params)

    async def handle(self, params: BaseModel) -> Dict[str, Any]:
        raise NotImplementedError


class OverviewHandler(QueryHandler):
    """Network overview: height, difficulty, hashrate, mempool, fees and price."""

    key = "overview"
    description = "Bitcoin network overview - block height, difficulty, hashrate, mempool, fees, and price"
    input_model = EmptyInput

    async def handle(self, params: EmptyInput) -> Dict[str, Any]:
        captured_at = self.clock()
        mempool = self.providers.mempool

        raw = await self.aggregator.gather({
            "fees": mempool.get_recommended_fees,
            "stats": self.providers.blockchair.get_stats,
            "blocks": mempool.get_blocks,
        })

        fees = self.normalizer.fee_tiers(raw["fees"])
        stats = self.normalizer.network_stats(raw["stats"])
        blocks = self.normalizer.blocks(raw["blocks"], limit=1)
        if not blocks:
            raise NormalizationError("blocks[0]")
        latest = blocks[0]

        snapshot = NetworkSnapshot(
            block_height=latest.height,
            difficulty=stats.difficulty,
            hashrate_24h=stats.hashrate_24h,
            mempool_tx_count=stats.mempool_transactions,
            mempool_bytes=stats.mempool_size,
            fees=fees,
            price_usd=stats.market_price_usd,
            latest_block=latest,
            fetched_at=captured_at,
        )
        return self.shape(snapshot)

    def shape(self, snapshot: NetworkSnapshot) -> Dict[str, Any]:
        latest = snapshot.latest_block
        return {
            "network": {
                "blockHeight": snapshot.block_height,
                "difficulty": snapshot.difficulty,
                "hashrate": snapshot.hashrate_24h,
                "mempoolTxs": snapshot.mempool_tx_count,
                "mempoolSize": snapshot.mempool_bytes,
            },
            "fees": {
                "fastest": snapshot.fees.fastest,
                "halfHour": snapshot.fees.half_hour,
                "hour": snapshot.fees.hour,
                "economy": snapshot.fees.economy,
                "minimum": snapshot.fees.minimum,
                "unit": "sat/vB",
            },
            "price": {
                "usd": snapshot.price_usd,
            },
            "latestBlock": {
                "height": latest.height,
                "timestamp": unix_to_iso(latest.timestamp),
                "txCount": latest.tx_count,
                "size": latest.size,
            },
            "fetchedAt": to_iso(snapshot.fetched_at),
            "dataSources": self.providers.overview_sources,
        }


class AddressHandler(QueryHandler):
    """Address balance and transaction counts."""

    key = "address"
    description = "Look up Bitcoin address balance and transaction count"
    input_model = AddressInput

    async def handle(self, params: AddressInput) -> Dict[str, Any]:
        captured_at = self.clock()
        address = params.address

        raw = await self.aggregator.gather({
            "address": partial(self.providers.mempool.get_address, address),
        })
        balance = self.normalizer.address_balance(address, raw["address"])

        return {
            "address": address,
            "balance": {
                "confirmed": format_btc(balance.confirmed_sats),
                "unconfirmed": format_btc(balance.unconfirmed_sats),
                "total": format_btc(balance.total_sats),
                "sats": balance.total_sats,
            },
            "transactions": {
                "confirmed": balance.confirmed_tx_count,
                "unconfirmed": balance.unconfirmed_tx_count,
                "total": balance.total_tx_count,
            },
            "received": format_btc(balance.received_sats),
            "spent": format_btc(balance.spent_sats),
            "fetchedAt": to_iso(captured_at),
        }


class TransactionHandler(QueryHandler):
    """Full transaction details by txid."""

    key = "transaction"
    description = "Get full transaction details by txid"
    input_model = TransactionInput

    async def handle(self, params: TransactionInput) -> Dict[str, Any]:
        captured_at = self.clock()

        raw = await self.aggregator.gather({
            "tx": partial(self.providers.mempool.get_transaction, params.txid),
        })
        tx = self.normalizer.transaction(raw["tx"])

        return self.shape(tx, captured_at)

    def shape(self, tx: TransactionDetail, captured_at) -> Dict[str, Any]:
        return {
            "txid": tx.txid,
            "confirmed": tx.confirmed,
            "blockHeight": tx.block_height,
            "blockTime": to_iso(tx.block_time) if tx.block_time else None,
            "size": tx.size,
            "weight": tx.weight,
            "vsize": tx.vsize,
            "fee": {
                "sats": tx.fee_sats,
                "btc": format_btc(tx.fee_sats),
                "satPerVb": f"{tx.fee_rate:.2f}",
            },
            "inputs": {
                "count": tx.input_count,
                "totalBtc": format_btc(tx.input_total_sats),
                "totalSats": tx.input_total_sats,
            },
            "outputs": {
                "count": tx.output_count,
                "totalBtc": format_btc(tx.output_total_sats),
                "totalSats": tx.output_total_sats,
            },
            "addresses": {
                "inputs": tx.input_addresses,
                "outputs": tx.output_addresses,
            },
            "fetchedAt": to_iso(captured_at),
        }


class FeesHandler(QueryHandler):
    """Fee tiers, mempool pressure, reference costs and recent block cadence."""

    key = "fees"
    description = "Current fee estimates and mempool analysis"
    input_model = EmptyInput

    async def handle(self, params: EmptyInput) -> Dict[str, Any]:
        captured_at = self.clock()
        mempool = self.providers.mempool

        raw = await self.aggregator.gather({
            "fees": mempool.get_recommended_fees,
            "mempool": mempool.get_mempool_info,
            "blocks": mempool.get_blocks,
        })

        blocks = self.normalizer.blocks(raw["blocks"], limit=FEE_SAMPLE_BLOCKS)
        report = FeeEstimateReport(
            fees=self.normalizer.fee_tiers(raw["fees"]),
            mempool=self.normalizer.mempool_summary(raw["mempool"]),
            recent_blocks=blocks,
            avg_block_time_minutes=average_block_minutes(blocks),
            fetched_at=captured_at,
        )
        return self.shape(report)

    def shape(self, report: FeeEstimateReport) -> Dict[str, Any]:
        fees = report.fees
        tiers = {
            "fastest": fees.fastest,
            "halfHour": fees.half_hour,
            "hour": fees.hour,
            "economy": fees.economy,
            "minimum": fees.minimum,
        }
        return {
            "recommended": {
                name: {"satsPerVb": rate, "estimatedMinutes": FEE_TIER_MINUTES[name]}
                for name, rate in tiers.items()
            },
            "mempool": {
                "count": report.mempool.count,
                "vsize": report.mempool.vsize,
                "totalFee": report.mempool.total_fee,
                "sizeMb": megabytes(report.mempool.vsize),
            },
            "costEstimates": {
                "note": f"Estimates for typical P2PKH transaction ({REFERENCE_TX_VBYTES} vbytes)",
                "fastest": f"{format_number(fees.fastest * REFERENCE_TX_VBYTES)} sats",
                "economy": f"{format_number(fees.economy * REFERENCE_TX_VBYTES)} sats",
            },
            "recentBlocks": [
                {
                    "height": block.height,
                    "txCount": block.tx_count,
                    "size": block.size,
                    "weight": block.weight,
                }
                for block in report.recent_blocks
            ],
            "avgBlockTime": f"{format_fixed(report.avg_block_time_minutes, 1)} minutes",
            "fetchedAt": to_iso(report.fetched_at),
        }


class BlocksHandler(QueryHandler):
    """Most recent blocks with miner, reward and fee details."""

    key = "blocks"
    description = "Recent blocks with stats and details"
    input_model = BlocksInput

    async def handle(self, params: BlocksInput) -> Dict[str, Any]:
        captured_at = self.clock()
        limit = clamp_block_limit(params.limit)

        raw = await self.aggregator.gather({
            "blocks": self.providers.mempool.get_blocks,
        })
        blocks = self.normalizer.blocks(raw["blocks"], limit=limit)

        return {
            "blocks": [self._block(block) for block in blocks],
            "summary": self._summary(blocks),
            "fetchedAt": to_iso(captured_at),
        }

    @staticmethod
    def _block(block: BlockSummary) -> Dict[str, Any]:
        return {
            "height": block.height,
            "hash": block.hash,
            "timestamp": unix_to_iso(block.timestamp),
            "txCount": block.tx_count,
            "size": block.size,
            "weight": block.weight,
            "miner": block.miner,
            "reward": format_btc(block.reward_sats) if block.reward_sats is not None else None,
            "fees": format_btc(block.total_fees_sats) if block.total_fees_sats is not None else None,
        }

    @staticmethod
    def _summary(blocks: List[BlockSummary]) -> Dict[str, Any]:
        total_txs = sum(block.tx_count for block in blocks)
        total_size = sum(block.size for block in blocks)
        return {
            "blocksReturned": len(blocks),
            "totalTransactions": total_txs,
            "avgTxPerBlock": _half_up_int(total_txs, len(blocks)) if blocks else 0,
            "totalSizeMb": megabytes(total_size),
            "heightRange": f"{blocks[-1].height} - {blocks[0].height}" if blocks else None,
        }


class AddressReportHandler(QueryHandler):
    """
    Balance, activity, classification and recent history of an address.

    The history source is isolated: if it fails upstream the report is still
    produced with an empty history. The address and ticker sources are not.
    """

    key = "address-report"
    description = "Comprehensive address analysis with recent transactions"
    input_model = AddressInput

    def __init__(self,
                 providers: ProviderSet,
                 aggregator: ConcurrentAggregator,
                 normalizer: DomainNormalizer,
                 classifier: AddressClassifier,
                 clock: Clock = get_current_utc):
        super().__init__(providers, aggregator, normalizer, clock)
        self.classifier = classifier

    async def handle(self, params: AddressInput) -> Dict[str, Any]:
        captured_at = self.clock()
        address = params.address
        mempool = self.providers.mempool

        raw = await self.aggregator.gather({
            "address": partial(mempool.get_address, address),
            "txs": isolated(partial(mempool.get_address_txs, address), default_factory=list),
            "ticker": self.providers.ticker.get_ticker,
        })

        balance = self.normalizer.address_balance(address, raw["address"])
        activity = self.normalizer.address_activity(raw["address"])
        history = self.normalizer.address_transactions(address, raw["txs"])
        price = self.normalizer.ticker_price(raw["ticker"])

        report = AddressReport(
            balance=balance,
            activity=activity,
            classification=self.classifier.classify(balance, activity, history, captured_at),
            recent_transactions=history[:RECENT_TRANSACTIONS],
            price_usd=price,
            fetched_at=captured_at,
        )
        return self.shape(report)

    def shape(self, report: AddressReport) -> Dict[str, Any]:
        balance = report.balance
        activity = report.activity
        classification = report.classification
        return {
            "address": balance.address,
            "balance": {
                "btc": format_btc(balance.confirmed_sats),
                "sats": balance.confirmed_sats,
                "usd": usd_value(balance.confirmed_sats, report.price_usd),
                "unconfirmed": format_btc(balance.unconfirmed_sats),
                "total": format_btc(balance.total_sats),
                "totalSats": balance.total_sats,
            },
            "transactions": {
                "confirmed": balance.confirmed_tx_count,
                "unconfirmed": balance.unconfirmed_tx_count,
                "total": balance.total_tx_count,
            },
            "activity": {
                "totalTransactions": activity.total_tx_count,
                "totalReceived": format_btc(activity.received_sats),
                "totalSpent": format_btc(activity.spent_sats),
                "utxoCount": activity.utxo_count,
            },
            "classification": {
                "isActive": classification.is_active,
                "isWhale": classification.is_whale,
                "hasRecentActivity": classification.has_recent_activity,
            },
            "recentTransactions": [self._transaction(tx) for tx in report.recent_transactions],
            "pricing": {
                "btcUsd": report.price_usd,
            },
            "fetchedAt": to_iso(report.fetched_at),
        }

    @staticmethod
    def _transaction(tx: AddressTransaction) -> Dict[str, Any]:
        return {
            "txid": tx.txid,
            "confirmed": tx.confirmed,
            "blockHeight": tx.block_height,
            "timestamp": unix_to_iso(tx.block_time),
            "type": tx.direction,
            "amount": format_btc(tx.net_sats),
            "amountSats": tx.net_sats,
        }


def build_query_handlers(providers: ProviderSet,
                         aggregator: ConcurrentAggregator,
                         normalizer: DomainNormalizer,
                         classifier: AddressClassifier,
                         clock: Clock = get_current_utc) -> List[QueryHandler]:
    """All six handlers in registration order."""
    shared = dict(providers=providers, aggregator=aggregator, normalizer=normalizer, clock=clock)
    return [
        OverviewHandler(**shared),
        AddressHandler(**shared),
        TransactionHandler(**shared),
        FeesHandler(**shared),
        BlocksHandler(**shared),
        AddressReportHandler(classifier=classifier, **shared),
    ]
