"""Threshold classification of addresses."""

from datetime import datetime
from typing import Iterable

from btc_intel.models.domain import (
    AddressActivity,
    AddressBalance,
    AddressClassification,
    AddressTransaction,
)
from btc_intel.utils.time import timestamp_to_unix

ACTIVE_TX_THRESHOLD = 10
WHALE_THRESHOLD_SATS = 100_000_000_000  # 1000 BTC
RECENT_ACTIVITY_WINDOW_SECONDS = 86_400 * 30


class AddressClassifier:
    """
    Stateless predicates over normalized address entities.

    All thresholds are strict: exactly ``active_tx_threshold`` transactions is
    not active, exactly ``whale_threshold_sats`` is not a whale.
    """

    def __init__(self,
                 active_tx_threshold: int = ACTIVE_TX_THRESHOLD,
                 whale_threshold_sats: int = WHALE_THRESHOLD_SATS,
                 recent_window_seconds: int = RECENT_ACTIVITY_WINDOW_SECONDS):
        self.active_tx_threshold = active_tx_threshold
        self.whale_threshold_sats = whale_threshold_sats
        self.recent_window_seconds = recent_window_seconds

    def is_active(self, activity: AddressActivity) -> bool:
        return activity.total_tx_count > self.active_tx_threshold

    def is_whale(self, balance: AddressBalance) -> bool:
        return balance.confirmed_sats > self.whale_threshold_sats

    def has_recent_activity(self, transactions: Iterable[AddressTransaction],
                            now: datetime) -> bool:
        """Any transaction confirmed inside the window ending at ``now`` (capture time)."""
        now_unix = timestamp_to_unix(now)
        return any(
            tx.block_time is not None
            and now_unix - tx.block_time < self.recent_window_seconds
            for tx in transactions
        )

    def classify(self,
                 balance: AddressBalance,
                 activity: AddressActivity,
                 transactions: Iterable[AddressTransaction],
                 now: datetime) -> AddressClassification:
        return AddressClassification(
            is_active=self.is_active(activity),
            is_whale=self.is_whale(balance),
            has_recent_activity=self.has_recent_activity(transactions, now),
        )
