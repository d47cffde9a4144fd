"""
Upstream fetcher: one HTTP GET, one parsed JSON body.

No retries and no timeout override: the transport default applies, and a
hung upstream call hangs the query that issued it.
"""

from typing import Any, Callable, Optional

import httpx
import structlog

from btc_intel.core.errors import UpstreamError

logger = structlog.get_logger(__name__)

ResultHook = Callable[[str, str], None]


class UpstreamFetcher:
    """Issues GET requests against provider endpoints and parses JSON bodies."""

    def __init__(self,
                 client: Optional[httpx.AsyncClient] = None,
                 user_agent: str = "bitcoin-intel/1.0.0",
                 on_result: Optional[ResultHook] = None):
        """
        Args:
            client: Pre-built client (tests pass one with a mock transport)
            user_agent: User-Agent header for owned clients
            on_result: Called with ``(provider, outcome)`` after every call
        """
        self._owns_client = client is None
        self._client = client
        self.user_agent = user_agent
        self.on_result = on_result

    @property
    def client(self) -> httpx.AsyncClient:
        """Injected client, or an owned one built on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json",
                },
                follow_redirects=True,
            )
        return self._client

    async def get_json(self, url: str, provider: str = "upstream") -> Any:
        """
        GET ``url`` and return the decoded JSON body.

        Raises:
            UpstreamError: non-2xx status, transport failure or invalid JSON
        """
        log = logger.bind(provider=provider, url=url)
        log.debug("Upstream request")

        try:
            response = await self.client.get(url)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            log.warning("Upstream transport failure", error=str(e))
            self._report(provider, UpstreamError.TRANSPORT)
            raise UpstreamError.from_transport(e, url=url) from e

        if not response.is_success:
            log.warning("Upstream returned error status", status_code=response.status_code)
            self._report(provider, UpstreamError.STATUS)
            raise UpstreamError.from_status(response.status_code, url=url)

        try:
            body = response.json()
        except ValueError as e:
            log.warning("Upstream returned invalid JSON")
            self._report(provider, UpstreamError.PARSE)
            raise UpstreamError.from_parse(url=url) from e

        self._report(provider, "ok")
        return body

    def _report(self, provider: str, outcome: str) -> None:
        if self.on_result is not None:
            self.on_result(provider, outcome)

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "UpstreamFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
