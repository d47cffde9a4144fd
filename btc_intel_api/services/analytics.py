"""
Payment analytics.

The recorder observes payment events on its own; the entrypoints here only
forward a time window to it and relay what it returns, coercing monetary
totals to strings so they serialize safely.
"""

import csv
import io
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional, Protocol

import structlog

from btc_intel.utils.time import Clock, get_current_utc, to_iso
from btc_intel_api.schemas.inputs import AnalyticsInput, AnalyticsTransactionsInput

logger = structlog.get_logger(__name__)

INCOMING = "incoming"
OUTGOING = "outgoing"

CSV_COLUMNS = ["id", "timestamp", "direction", "entrypoint", "amount"]


@dataclass
class PaymentEvent:
    """One observed payment."""
    direction: str
    amount: int
    entrypoint: str
    timestamp: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": to_iso(self.timestamp),
            "direction": self.direction,
            "entrypoint": self.entrypoint,
            "amount": str(self.amount),
        }


class PaymentTracker(Protocol):
    """Recorder interface consumed by the analytics queries."""

    def record(self, direction: str, amount: int, entrypoint: str) -> PaymentEvent:
        ...

    def list_events(self, window_ms: Optional[int] = None) -> List[PaymentEvent]:
        """Events inside the window (all when ``None``), oldest first."""
        ...


class InMemoryPaymentTracker:
    """Bounded, append-only in-process payment recorder."""

    def __init__(self, max_events: int = 10_000, clock: Clock = get_current_utc):
        self.events: Deque[PaymentEvent] = deque(maxlen=max_events)
        self.clock = clock

    def record(self, direction: str, amount: int, entrypoint: str) -> PaymentEvent:
        if direction not in (INCOMING, OUTGOING):
            raise ValueError(f"Unknown payment direction: {direction}")
        event = PaymentEvent(direction=direction, amount=amount,
                             entrypoint=entrypoint, timestamp=self.clock())
        self.events.append(event)
        logger.debug("Payment recorded", direction=direction, amount=amount, entrypoint=entrypoint)
        return event

    def list_events(self, window_ms: Optional[int] = None) -> List[PaymentEvent]:
        if window_ms is None:
            return list(self.events)
        cutoff = self.clock() - timedelta(milliseconds=window_ms)
        return [event for event in self.events if event.timestamp >= cutoff]


def get_summary(tracker: PaymentTracker, window_ms: Optional[int] = None) -> Dict[str, Any]:
    """Totals over the window; amounts stay integers here."""
    events = tracker.list_events(window_ms)
    incoming = [e for e in events if e.direction == INCOMING]
    outgoing = [e for e in events if e.direction == OUTGOING]
    incoming_total = sum(e.amount for e in incoming)
    outgoing_total = sum(e.amount for e in outgoing)
    return {
        "windowMs": window_ms,
        "transactionCount": len(events),
        "incomingCount": len(incoming),
        "outgoingCount": len(outgoing),
        "incomingTotal": incoming_total,
        "outgoingTotal": outgoing_total,
        "netTotal": incoming_total - outgoing_total,
    }


def get_all_transactions(tracker: PaymentTracker,
                         window_ms: Optional[int] = None) -> List[Dict[str, Any]]:
    """Events in the window, newest first."""
    return [event.to_dict() for event in reversed(tracker.list_events(window_ms))]


def export_to_csv(tracker: PaymentTracker, window_ms: Optional[int] = None) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for event in tracker.list_events(window_ms):
        writer.writerow(event.to_dict())
    return buffer.getvalue()


class AnalyticsService:
    """Read-only analytics entrypoints over an optional recorder."""

    def __init__(self, tracker: Optional[PaymentTracker], default_limit: int = 50):
        self.tracker = tracker
        self.default_limit = default_limit

    async def summary(self, params: AnalyticsInput) -> Dict[str, Any]:
        if self.tracker is None:
            return {"error": "Analytics not available", "payments": []}

        summary = get_summary(self.tracker, params.window_ms)
        return {
            **summary,
            "outgoingTotal": str(summary["outgoingTotal"]),
            "incomingTotal": str(summary["incomingTotal"]),
            "netTotal": str(summary["netTotal"]),
        }

    async def transactions(self, params: AnalyticsTransactionsInput) -> Dict[str, Any]:
        if self.tracker is None:
            return {"transactions": []}

        limit = params.limit or self.default_limit
        return {"transactions": get_all_transactions(self.tracker, params.window_ms)[:limit]}

    async def csv(self, params: AnalyticsInput) -> Dict[str, Any]:
        if self.tracker is None:
            return {"csv": ""}

        return {"csv": export_to_csv(self.tracker, params.window_ms)}
