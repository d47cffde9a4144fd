"""Pydantic schemas for the Bitcoin Intel API."""

from btc_intel_api.schemas.envelope import InvokeResponse
from btc_intel_api.schemas.inputs import (
    AddressInput,
    AnalyticsInput,
    AnalyticsTransactionsInput,
    BlocksInput,
    EmptyInput,
    TransactionInput,
)

__all__ = [
    "InvokeResponse",
    "AddressInput",
    "AnalyticsInput",
    "AnalyticsTransactionsInput",
    "BlocksInput",
    "EmptyInput",
    "TransactionInput",
]
