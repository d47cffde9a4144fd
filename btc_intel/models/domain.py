"""
Domain entities built fresh for every query.

All monetary amounts are integer satoshis; BTC decimal strings are derived
only when a response is shaped.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from btc_intel.utils.units import round_half_up

Number = Union[int, float]


@dataclass
class FeeTiers:
    """Recommended fee rates in sat/vByte."""
    fastest: Number
    half_hour: Number
    hour: Number
    economy: Number
    minimum: Number


@dataclass
class NetworkStats:
    """Chain-statistics provider aggregate."""
    difficulty: Number
    hashrate_24h: Union[str, Number]
    mempool_transactions: int
    mempool_size: int
    market_price_usd: Number


@dataclass
class BlockSummary:
    """Block-level summary."""
    height: int
    hash: str
    timestamp: int
    tx_count: int
    size: int
    weight: int
    miner: str = "Unknown"
    reward_sats: Optional[int] = None
    total_fees_sats: Optional[int] = None


@dataclass
class MempoolSummary:
    """Mempool aggregate from the mempool-indexing provider."""
    count: int
    vsize: int
    total_fee: int


@dataclass
class NetworkSnapshot:
    """Network overview assembled from several providers."""
    block_height: int
    difficulty: Number
    hashrate_24h: Union[str, Number]
    mempool_tx_count: int
    mempool_bytes: int
    fees: FeeTiers
    price_usd: Number
    latest_block: BlockSummary
    fetched_at: datetime


@dataclass
class AddressBalance:
    """Confirmed and mempool balance of one address."""
    address: str
    confirmed_sats: int
    unconfirmed_sats: int
    confirmed_tx_count: int
    unconfirmed_tx_count: int
    received_sats: int
    spent_sats: int

    @property
    def total_sats(self) -> int:
        return self.confirmed_sats + self.unconfirmed_sats

    @property
    def total_tx_count(self) -> int:
        return self.confirmed_tx_count + self.unconfirmed_tx_count


@dataclass
class AddressActivity:
    """Lifetime on-chain activity of one address."""
    total_tx_count: int
    received_sats: int
    spent_sats: int
    funded_txo_count: int
    spent_txo_count: int

    @property
    def utxo_count(self) -> int:
        return self.funded_txo_count - self.spent_txo_count


@dataclass
class TransactionDetail:
    """Full transaction view."""
    txid: str
    confirmed: bool
    block_height: Optional[int]
    block_time: Optional[datetime]
    size: int
    weight: int
    fee_sats: int
    input_count: int
    input_total_sats: int
    output_count: int
    output_total_sats: int
    input_addresses: List[str] = field(default_factory=list)
    output_addresses: List[str] = field(default_factory=list)

    @property
    def vsize(self) -> int:
        return math.ceil(self.weight / 4)

    @property
    def fee_rate(self) -> Decimal:
        """Fee in sat/vByte rounded to 2 decimals."""
        return round_half_up(Decimal(self.fee_sats) / Decimal(self.vsize), 2)


@dataclass
class AddressTransaction:
    """One history entry seen from the perspective of a single address."""
    txid: str
    confirmed: bool
    block_height: Optional[int]
    block_time: Optional[int]
    received_sats: int
    sent_sats: int

    @property
    def is_outgoing(self) -> bool:
        return self.sent_sats > 0

    @property
    def direction(self) -> str:
        return "outgoing" if self.is_outgoing else "incoming"

    @property
    def net_sats(self) -> int:
        """Signed balance change for the address."""
        return self.received_sats - self.sent_sats


@dataclass
class FeeEstimateReport:
    """Fee tiers, mempool pressure and recent block cadence."""
    fees: FeeTiers
    mempool: MempoolSummary
    recent_blocks: List[BlockSummary]
    avg_block_time_minutes: Decimal
    fetched_at: datetime


@dataclass
class AddressClassification:
    """Threshold-based flags for an address."""
    is_active: bool
    is_whale: bool
    has_recent_activity: bool


@dataclass
class AddressReport:
    """Balance, activity, classification and recent history of an address."""
    balance: AddressBalance
    activity: AddressActivity
    classification: AddressClassification
    recent_transactions: List[AddressTransaction]
    price_usd: Number
    fetched_at: datetime
