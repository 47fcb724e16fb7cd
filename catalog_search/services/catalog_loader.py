"""
Loads the raw catalog export from a URL or a local file and parses it.
All network logic is isolated here.
"""
import asyncio
from pathlib import Path
from typing import Callable, Optional

import aiohttp

from catalog_search.config import config
from catalog_search.errors import (
    ConfigError,
    ExternalServiceError,
    IngestionError,
    NetworkError,
)
from catalog_search.logger import logger
from catalog_search.models.search import ParseResult
from catalog_search.queue.parse_worker import ParseEvent, ParseWorker
from catalog_search.sentry import capture_ingestion_failure
from catalog_search.services.csv_parser import ParseCache
from catalog_search.utils.retry import async_retry


class CatalogLoader:
    """
    Fetches and parses the catalog once, then serves it from the cache.
    Search code never touches the network or the filesystem directly.
    """

    def __init__(
        self,
        cache: Optional[ParseCache] = None,
        url: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.url = config.CATALOG_URL if url is None else url
        self.path = config.CATALOG_PATH if path is None else path
        self.cache = cache if cache is not None else ParseCache()
        self.worker = ParseWorker(self.cache)
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def source(self) -> str:
        return self.url or self.path

    async def initialize(self):
        """Open the HTTP session when the catalog lives behind a URL."""
        if not self.url or self.session is not None:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=config.REQUEST_TIMEOUT)
        )
        logger.info(f"Catalog loader initialized for {self.url}")

    async def close(self):
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    @async_retry(exceptions=(NetworkError,))
    async def fetch_text(self) -> str:
        """
        Download the raw export.

        Raises:
            ExternalServiceError: If the server answers with a non-200 status
            RetryExhaustedError: If the network keeps failing
        """
        if self.session is None:
            await self.initialize()

        try:
            response = await self.session.get(self.url)

            if response.status != 200:
                error_text = await response.text()
                logger.error(f"Catalog download failed {response.status}: {error_text[:200]}")
                raise ExternalServiceError(
                    f"Failed to load catalog: HTTP {response.status}"
                )

            return await response.text()

        except aiohttp.ClientError as e:
            logger.error(f"Network error downloading catalog: {str(e)}")
            raise NetworkError(f"Network error downloading catalog: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout downloading catalog: {str(e)}")
            raise NetworkError(f"Timeout downloading catalog: {str(e)}") from e

    async def read_text(self) -> str:
        """Read the raw export from disk without blocking the loop."""
        try:
            return await asyncio.to_thread(Path(self.path).read_text, encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise IngestionError(f"Failed to read catalog file {self.path}: {e}") from e

    async def load(
        self,
        listener: Optional[Callable[[ParseEvent], None]] = None,
        force: bool = False,
    ) -> ParseResult:
        """
        Return the parsed catalog, fetching and parsing it if needed.

        Raises:
            ConfigError: If neither a URL nor a path is configured
            IngestionError: If the export is unreadable or holds no data
            ExternalServiceError: If the remote source fails
        """
        cached = self.cache.get()
        if cached is not None and not force:
            return cached

        if not self.source:
            raise ConfigError("No catalog source configured (set CATALOG_URL or CATALOG_PATH)")

        logger.info(f"Loading catalog from {self.source}")

        try:
            text = await self.fetch_text() if self.url else await self.read_text()
            return await self.worker.parse(text, listener=listener)
        except (IngestionError, ExternalServiceError, NetworkError) as e:
            capture_ingestion_failure(self.source, e)
            raise
