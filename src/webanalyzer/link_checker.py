"""Bounded-concurrency link health checking.

Every resolved link on a page gets one HEAD probe. A job never has more
than ``max_concurrent_probes`` probes in flight; an optional pool shared by
all jobs of a dispatcher caps the total across jobs. Each probe returns a
ProbeOutcome and the outcomes are merged once every probe has finished, so
no probe writes to shared state.
"""

import asyncio
import logging
from typing import Iterable, Optional

import httpx

from webanalyzer.config import AnalyzerConfig, resolve_config
from webanalyzer.models import BrokenLinkRecord, ProbeOutcome

logger = logging.getLogger(__name__)

# Everything a probe may raise that means "this link is unreachable"
PROBE_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError)


def collect_broken_links(outcomes: Iterable[ProbeOutcome]) -> list[BrokenLinkRecord]:
    """Merge probe outcomes into broken link records, keeping link order."""
    return [outcome.to_broken_link() for outcome in outcomes if outcome.is_broken]


class LinkHealthChecker:
    """Probes links with HEAD requests and reports the broken ones."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        global_pool: Optional[asyncio.Semaphore] = None,
    ):
        """Initialize the checker.

        Args:
            config: Pipeline configuration (timeouts, redirect and concurrency limits)
            transport: Optional httpx transport, used by tests to fake the network
            global_pool: Optional semaphore shared with other jobs
        """
        self.config = resolve_config(config)
        self.max_concurrent = self.config.max_concurrent_probes
        self._transport = transport
        self._global_pool = global_pool

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.probe_timeout),
            follow_redirects=True,
            max_redirects=self.config.probe_max_redirects,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )

    async def probe(self, client: httpx.AsyncClient, url: str) -> ProbeOutcome:
        """Issue a single HEAD probe.

        Transport failures (DNS, connect, timeout, too many redirects,
        unsupported scheme) are returned as outcomes, never raised.
        """
        try:
            response = await client.head(url)
        except PROBE_ERRORS as e:
            error = str(e) or type(e).__name__
            logger.debug(f"Probe failed for {url}: {error}")
            return ProbeOutcome(url=url, error=error)

        logger.debug(f"Probe {url} -> {response.status_code}")
        return ProbeOutcome(url=url, status_code=response.status_code)

    async def _bounded_probe(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        url: str,
    ) -> ProbeOutcome:
        async with semaphore:
            if self._global_pool is None:
                return await self.probe(client, url)
            async with self._global_pool:
                return await self.probe(client, url)

    async def check_links(self, urls: Iterable[str]) -> list[ProbeOutcome]:
        """Probe every link and wait for all of them.

        Returns:
            One outcome per link, in the order the links were given
        """
        urls = list(urls)
        if not urls:
            return []

        # One semaphore per call, so each job gets its own limit
        semaphore = asyncio.Semaphore(self.max_concurrent)
        async with self._make_client() as client:
            tasks = [self._bounded_probe(client, semaphore, url) for url in urls]
            outcomes = await asyncio.gather(*tasks)

        logger.debug(f"Probed {len(outcomes)} links")
        return list(outcomes)

    async def check(self, urls: Iterable[str]) -> list[BrokenLinkRecord]:
        """Probe links and return only the broken ones."""
        return collect_broken_links(await self.check_links(urls))
