"""Utility functions and helpers."""

from btc_intel.utils.time import get_current_utc, to_iso, to_utc_timestamp, unix_to_iso
from btc_intel.utils.units import btc_to_satoshi, format_btc, satoshi_to_btc

__all__ = [
    "get_current_utc",
    "to_iso",
    "to_utc_timestamp",
    "unix_to_iso",
    "btc_to_satoshi",
    "format_btc",
    "satoshi_to_btc",
]
