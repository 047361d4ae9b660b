"""Async fetching of advisory pages for DepWatch."""

import asyncio
import ssl
from typing import Dict, List, Optional, Sequence, Set, Any

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..config import DEFAULT_MAX_CONCURRENT, DEFAULT_TIMEOUT, AdvisorySource
from ..core.registry import AdvisoryRegistry
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor
from .extractors import get_extractor


class AdvisoryFetcher:
    """Async client that downloads advisory pages and extracts fragments.

    Pages are fetched concurrently, one task per source, and the fragments
    are merged into the registry one after another once every task has
    finished.
    """

    USER_AGENT = "dep-watch (+supply-chain advisory scanner)"

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT
    ) -> None:
        """Initialize the advisory fetcher.

        Args:
            session: Optional aiohttp session for connection reuse
            timeout: Total timeout per request in seconds
            max_concurrent: Maximum number of pages fetched at once
        """
        self.logger = get_logger("AdvisoryFetcher")
        self.performance_monitor = PerformanceMonitor()
        self.timeout = ClientTimeout(total=timeout)
        self.max_concurrent = max_concurrent
        self._session = session
        self._owns_session = session is None
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def __aenter__(self) -> "AdvisoryFetcher":
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp ClientSession
        """
        if not self._session or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
                headers={"User-Agent": self.USER_AGENT},
            )
            self._owns_session = True
        return self._session

    async def fetch_text(self, url: str) -> str:
        """Download a page.

        Args:
            url: Page URL

        Returns:
            Response body as text

        Raises:
            aiohttp.ClientError: On connection errors or an error status
            asyncio.TimeoutError: If the request times out
        """
        session = self._get_session()
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.text()

    async def fetch_source(self, source: AdvisorySource) -> Dict[str, Set[str]]:
        """Download one advisory and extract its fragment.

        A failing source contributes an empty fragment.

        Args:
            source: Advisory source

        Returns:
            Package name -> versions reported by the source
        """
        self.logger.info(f"Fetching from {source.url}...")

        try:
            page = await self.fetch_text(source.url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Failed to fetch {source.url}: {e!r}")
            return {}

        fragment = get_extractor(source.type)(page)
        self.logger.info(f"Found {len(fragment)} packages from {source.url}")
        return fragment

    async def fetch_fragments(self, sources: Sequence[AdvisorySource]) -> List[Dict[str, Set[str]]]:
        """Fetch several advisories concurrently.

        Args:
            sources: Advisory sources

        Returns:
            One fragment per source, in source order
        """
        with self.performance_monitor.measure("fetch_fragments"):
            semaphore = asyncio.Semaphore(self.max_concurrent)

            async def fetch_with_semaphore(source: AdvisorySource) -> Dict[str, Set[str]]:
                async with semaphore:
                    return await self.fetch_source(source)

            results = await asyncio.gather(
                *(fetch_with_semaphore(source) for source in sources),
                return_exceptions=True
            )

        fragments = []
        for source, result in zip(sources, results):
            if isinstance(result, Exception):
                self.logger.error(f"Advisory {source.url} failed: {result!r}")
                fragments.append({})
            else:
                fragments.append(result)

        return fragments

    async def fetch_all(
        self,
        sources: Sequence[AdvisorySource],
        registry: Optional[AdvisoryRegistry] = None
    ) -> AdvisoryRegistry:
        """Fetch every advisory and merge the results.

        Args:
            sources: Advisory sources
            registry: Registry to merge into, a new one if None

        Returns:
            Registry holding every fetched fragment
        """
        registry = registry if registry is not None else AdvisoryRegistry()

        fragments = await self.fetch_fragments(sources)
        registry.merge_all(fragments)

        self.logger.info(f"Total unique packages found: {len(registry)}")
        return registry
