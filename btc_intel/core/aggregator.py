"""
Concurrent fan-out / fan-in over independent upstream sources.

    query handler
         │
         ├──> source A ──┐
         ├──> source B ──┼──> settle all ──> results in declaration order
         └──> source C ──┘

Every source carries its own failure policy. ALL_OR_NOTHING aborts the whole
aggregation on failure; ISOLATE_WITH_DEFAULT replaces an UpstreamError from
that one source with its default and never swallows anything else.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import structlog

from btc_intel.core.errors import UpstreamError

logger = structlog.get_logger(__name__)

FetchOperation = Callable[[], Awaitable[Any]]


class FailurePolicy(str, Enum):
    """Per-source failure handling."""
    ALL_OR_NOTHING = "all_or_nothing"
    ISOLATE_WITH_DEFAULT = "isolate_with_default"


@dataclass
class Source:
    """One named fetch operation and how its failure is treated."""
    fetch: FetchOperation
    policy: FailurePolicy = FailurePolicy.ALL_OR_NOTHING
    default_factory: Optional[Callable[[], Any]] = None

    def __post_init__(self):
        if self.policy == FailurePolicy.ISOLATE_WITH_DEFAULT and self.default_factory is None:
            raise ValueError("ISOLATE_WITH_DEFAULT sources need a default_factory")


def isolated(fetch: FetchOperation, default_factory: Callable[[], Any] = list) -> Source:
    """Source whose UpstreamError is replaced by ``default_factory()``."""
    return Source(fetch=fetch,
                  policy=FailurePolicy.ISOLATE_WITH_DEFAULT,
                  default_factory=default_factory)


class ConcurrentAggregator:
    """Runs a fixed set of fetch operations concurrently and waits for all to settle."""

    async def gather(self, sources: Mapping[str, Union[Source, FetchOperation]]) -> Dict[str, Any]:
        """
        Launch every source at once and collect the results.

        Args:
            sources: Logical source name -> Source (or bare fetch operation,
                which is treated as ALL_OR_NOTHING)

        Returns:
            Results keyed by source name, in declaration order

        Raises:
            The first failure, in declaration order, of any source that is not
            isolated (or of an isolated source failing with anything other
            than UpstreamError). No partial result is returned.
        """
        specs = {
            name: spec if isinstance(spec, Source) else Source(fetch=spec)
            for name, spec in sources.items()
        }

        settled = await asyncio.gather(
            *(spec.fetch() for spec in specs.values()),
            return_exceptions=True,
        )

        results: Dict[str, Any] = {}
        for (name, spec), outcome in zip(specs.items(), settled):
            if not isinstance(outcome, BaseException):
                results[name] = outcome
                continue

            if (spec.policy == FailurePolicy.ISOLATE_WITH_DEFAULT
                    and isinstance(outcome, UpstreamError)):
                logger.warning("Isolated source failed, using default",
                               source=name,
                               error=str(outcome))
                results[name] = spec.default_factory()
                continue

            logger.warning("Aggregation failed", source=name, error=str(outcome))
            raise outcome

        return results
