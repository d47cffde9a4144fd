"""
Provider JSON -> domain entities.

Optional nested fields fall back to documented defaults (miner "Unknown",
reward/fees ``None``, missing prevout addresses omitted). A required field
that is absent or of the wrong type raises NormalizationError naming it.
"""

from typing import Any, Dict, List, Optional, Tuple, Type, Union

from btc_intel.core.errors import NormalizationError
from btc_intel.models.domain import (
    AddressActivity,
    AddressBalance,
    AddressTransaction,
    BlockSummary,
    FeeTiers,
    MempoolSummary,
    NetworkStats,
    TransactionDetail,
)
from btc_intel.utils.time import to_utc_timestamp

INT = (int,)
NUMBER = (int, float)
TEXT = (str,)
FLAG = (bool,)
MAPPING = (dict,)
SEQUENCE = (list,)

MAX_LISTED_ADDRESSES = 5
UNKNOWN_MINER = "Unknown"

_MISSING = object()


def _lookup(raw: Any, path: str) -> Any:
    """Walk a dotted path; absent keys and JSON nulls both count as missing."""
    node = raw
    for key in path.split("."):
        if not isinstance(node, dict):
            return _MISSING
        node = node.get(key, _MISSING)
        if node is None or node is _MISSING:
            return _MISSING
    return node


def _is_type(value: Any, kinds: Tuple[Type, ...]) -> bool:
    # bool is an int subclass; only FLAG accepts it
    if isinstance(value, bool) and bool not in kinds:
        return False
    return isinstance(value, kinds)


def _require(raw: Any, path: str, kinds: Tuple[Type, ...], label: str = None) -> Any:
    value = _lookup(raw, path)
    name = f"{label}.{path}" if label else path
    if value is _MISSING:
        raise NormalizationError(name)
    if not _is_type(value, kinds):
        raise NormalizationError(name, NormalizationError.MALFORMED)
    return value


def _optional(raw: Any, path: str, kinds: Tuple[Type, ...], default: Any = None,
              label: str = None) -> Any:
    value = _lookup(raw, path)
    if value is _MISSING:
        return default
    if not _is_type(value, kinds):
        name = f"{label}.{path}" if label else path
        raise NormalizationError(name, NormalizationError.MALFORMED)
    return value


def _require_list(raw: Any, label: str) -> List[Any]:
    if raw is None:
        raise NormalizationError(label)
    if not isinstance(raw, list):
        raise NormalizationError(label, NormalizationError.MALFORMED)
    return raw


class DomainNormalizer:
    """One mapping function per provider/entity pair."""

    # ==================== mempool.space ====================

    def fee_tiers(self, raw: Dict[str, Any]) -> FeeTiers:
        return FeeTiers(
            fastest=_require(raw, "fastestFee", NUMBER, "fees"),
            half_hour=_require(raw, "halfHourFee", NUMBER, "fees"),
            hour=_require(raw, "hourFee", NUMBER, "fees"),
            economy=_require(raw, "economyFee", NUMBER, "fees"),
            minimum=_require(raw, "minimumFee", NUMBER, "fees"),
        )

    def mempool_summary(self, raw: Dict[str, Any]) -> MempoolSummary:
        return MempoolSummary(
            count=_require(raw, "count", INT, "mempool"),
            vsize=_require(raw, "vsize", INT, "mempool"),
            total_fee=_require(raw, "total_fee", NUMBER, "mempool"),
        )

    def block_summary(self, raw: Dict[str, Any]) -> BlockSummary:
        pool_name = _optional(raw, "extras.pool.name", TEXT, label="block")
        return BlockSummary(
            height=_require(raw, "height", INT, "block"),
            hash=_require(raw, "id", TEXT, "block"),
            timestamp=_require(raw, "timestamp", INT, "block"),
            tx_count=_require(raw, "tx_count", INT, "block"),
            size=_require(raw, "size", INT, "block"),
            weight=_require(raw, "weight", INT, "block"),
            miner=pool_name or UNKNOWN_MINER,
            reward_sats=_optional(raw, "extras.reward", INT, label="block"),
            total_fees_sats=_optional(raw, "extras.totalFees", INT, label="block"),
        )

    def blocks(self, raw: List[Dict[str, Any]], limit: Optional[int] = None) -> List[BlockSummary]:
        """The first ``limit`` blocks (all when ``None``) in provider order, newest first."""
        raw_blocks = _require_list(raw, "blocks")
        if limit is not None:
            raw_blocks = raw_blocks[:limit]
        return [self.block_summary(block) for block in raw_blocks]

    def address_balance(self, address: str, raw: Dict[str, Any]) -> AddressBalance:
        funded = _require(raw, "chain_stats.funded_txo_sum", INT, "address")
        spent = _require(raw, "chain_stats.spent_txo_sum", INT, "address")
        # mempool stats default to zero when the provider omits them
        mempool_funded = _optional(raw, "mempool_stats.funded_txo_sum", INT, 0, "address")
        mempool_spent = _optional(raw, "mempool_stats.spent_txo_sum", INT, 0, "address")

        # Not clamped: a negative balance means the provider is inconsistent.
        return AddressBalance(
            address=address,
            confirmed_sats=funded - spent,
            unconfirmed_sats=mempool_funded - mempool_spent,
            confirmed_tx_count=_require(raw, "chain_stats.tx_count", INT, "address"),
            unconfirmed_tx_count=_optional(raw, "mempool_stats.tx_count", INT, 0, "address"),
            received_sats=funded,
            spent_sats=spent,
        )

    def address_activity(self, raw: Dict[str, Any]) -> AddressActivity:
        return AddressActivity(
            total_tx_count=_require(raw, "chain_stats.tx_count", INT, "address"),
            received_sats=_require(raw, "chain_stats.funded_txo_sum", INT, "address"),
            spent_sats=_require(raw, "chain_stats.spent_txo_sum", INT, "address"),
            funded_txo_count=_require(raw, "chain_stats.funded_txo_count", INT, "address"),
            spent_txo_count=_require(raw, "chain_stats.spent_txo_count", INT, "address"),
        )

    def transaction(self, raw: Dict[str, Any]) -> TransactionDetail:
        weight = _require(raw, "weight", INT, "tx")
        if weight <= 0:
            raise NormalizationError("tx.weight", NormalizationError.MALFORMED)

        vin = _require(raw, "vin", SEQUENCE, "tx")
        vout = _require(raw, "vout", SEQUENCE, "tx")

        block_time = _optional(raw, "status.block_time", INT, label="tx")

        input_addresses = [
            address for address in (
                _optional(v, "prevout.scriptpubkey_address", TEXT, label="tx.vin")
                for v in vin[:MAX_LISTED_ADDRESSES]
            ) if address
        ]
        output_addresses = [
            address for address in (
                _optional(v, "scriptpubkey_address", TEXT, label="tx.vout")
                for v in vout[:MAX_LISTED_ADDRESSES]
            ) if address
        ]

        return TransactionDetail(
            txid=_require(raw, "txid", TEXT, "tx"),
            confirmed=_require(raw, "status.confirmed", FLAG, "tx"),
            block_height=_optional(raw, "status.block_height", INT, label="tx"),
            block_time=to_utc_timestamp(block_time) if block_time else None,
            size=_require(raw, "size", INT, "tx"),
            weight=weight,
            fee_sats=_require(raw, "fee", INT, "tx"),
            input_count=len(vin),
            # coinbase inputs have no prevout
            input_total_sats=sum(_optional(v, "prevout.value", INT, 0, "tx.vin") for v in vin),
            output_count=len(vout),
            output_total_sats=sum(_require(v, "value", INT, "tx.vout") for v in vout),
            input_addresses=input_addresses,
            output_addresses=output_addresses,
        )

    def address_transaction(self, address: str, raw: Dict[str, Any]) -> AddressTransaction:
        vin = _require(raw, "vin", SEQUENCE, "tx")
        vout = _require(raw, "vout", SEQUENCE, "tx")

        received = sum(
            _require(v, "value", INT, "tx.vout")
            for v in vout
            if _optional(v, "scriptpubkey_address", TEXT, label="tx.vout") == address
        )
        sent = sum(
            _optional(v, "prevout.value", INT, 0, "tx.vin")
            for v in vin
            if _optional(v, "prevout.scriptpubkey_address", TEXT, label="tx.vin") == address
        )

        return AddressTransaction(
            txid=_require(raw, "txid", TEXT, "tx"),
            confirmed=_require(raw, "status.confirmed", FLAG, "tx"),
            block_height=_optional(raw, "status.block_height", INT, label="tx"),
            block_time=_optional(raw, "status.block_time", INT, label="tx") or None,
            received_sats=received,
            sent_sats=sent,
        )

    def address_transactions(self, address: str,
                             raw: List[Dict[str, Any]]) -> List[AddressTransaction]:
        """Address history in provider order (newest first)."""
        return [
            self.address_transaction(address, tx)
            for tx in _require_list(raw, "address_txs")
        ]

    # ==================== blockchair.com ====================

    def network_stats(self, raw: Dict[str, Any]) -> NetworkStats:
        data = _require(raw, "data", MAPPING, "stats")
        return NetworkStats(
            difficulty=_require(data, "difficulty", NUMBER, "stats.data"),
            hashrate_24h=_require(data, "hashrate_24h", TEXT + NUMBER, "stats.data"),
            mempool_transactions=_require(data, "mempool_transactions", INT, "stats.data"),
            mempool_size=_require(data, "mempool_size", INT, "stats.data"),
            market_price_usd=_require(data, "market_price_usd", NUMBER, "stats.data"),
        )

    # ==================== blockchain.info ====================

    def ticker_price(self, raw: Dict[str, Any], currency: str = "USD") -> Union[int, float]:
        return _require(raw, f"{currency}.last", NUMBER, "ticker")
