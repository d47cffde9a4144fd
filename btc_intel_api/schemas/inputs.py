"""Input schemas for the query entrypoints."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class EmptyInput(BaseModel):
    """Entrypoints that take no parameters."""


class AddressInput(BaseModel):
    """Address lookups (address, address-report)."""
    address: str = Field(..., min_length=1, description="Bitcoin address (legacy, segwit, or taproot)")


class TransactionInput(BaseModel):
    """Transaction lookup."""
    txid: str = Field(..., min_length=1, description="Transaction ID (64 character hex)")


class BlocksInput(BaseModel):
    """Recent blocks query."""
    limit: Optional[int] = Field(default=10, description="Number of blocks (1-15)")


class AnalyticsInput(BaseModel):
    """Analytics summary and CSV export."""
    model_config = ConfigDict(populate_by_name=True)

    window_ms: Optional[int] = Field(default=None, ge=0, alias="windowMs",
                                     description="Look-back window in milliseconds, all events if omitted")


class AnalyticsTransactionsInput(AnalyticsInput):
    """Analytics transaction listing."""
    limit: Optional[int] = Field(default=None, ge=0, description="Maximum transactions returned")
