"""Main link enrichment orchestrator."""

import asyncio
import time
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

import structlog

from .extractors import ProductExtractor
from .fetcher import PageFetcher
from .models import (
    EnrichmentSummary,
    FetchHttpError,
    FetchNetworkError,
    FetchOutcome,
    FetchSuccess,
    Gift,
    GiftLink,
    LinkResult,
    utcnow,
)
from .storage import CatalogStorage

logger = structlog.get_logger(__name__, service="enricher")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable(outcome: FetchOutcome) -> bool:
    if isinstance(outcome, FetchNetworkError):
        return True
    if isinstance(outcome, FetchHttpError):
        return outcome.status_code in RETRYABLE_STATUS_CODES
    return False


class LinkEnricher:
    """Walk the catalog's links, fetch stale ones and attach product metadata."""

    def __init__(
        self,
        storage: CatalogStorage,
        fetcher: PageFetcher,
        extractor: Optional[ProductExtractor] = None,
        request_delay: float = 1.0,
        freshness: timedelta = timedelta(days=1),
        max_retries: int = 0,
        retry_backoff: float = 2.0,
        force: bool = False,
        dry_run: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize enricher.

        Args:
            storage: Catalog storage
            fetcher: Page fetcher
            extractor: Product extractor (default marketplace settings if omitted)
            request_delay: Minimum delay between requests (seconds)
            freshness: Links enriched more recently than this are skipped
            max_retries: Extra attempts for network errors, 429 and 5xx
            retry_backoff: Base for exponential retry backoff (seconds)
            force: Fetch every link regardless of freshness
            dry_run: Never write the catalog
            sleep: Awaitable sleep used for pacing and backoff
            clock: Returns the current UTC time
        """
        self.storage = storage
        self.fetcher = fetcher
        self.extractor = extractor or ProductExtractor()
        self.request_delay = request_delay
        self.freshness = freshness
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.force = force
        self.dry_run = dry_run
        self._sleep = sleep
        self._clock = clock
        self._requests_made = 0

        logger.info(
            "enricher_initialized",
            catalog=str(storage.path),
            request_delay=request_delay,
            freshness_hours=freshness.total_seconds() / 3600,
            max_retries=max_retries,
            force=force,
            dry_run=dry_run,
        )

    async def enrich_all(self, item_id: Optional[str] = None) -> EnrichmentSummary:
        """
        Enrich every link in the catalog and persist if anything changed.

        Args:
            item_id: Only process links of the gift with this id

        Returns:
            EnrichmentSummary with per-link results

        Raises:
            CatalogLoadError: If the catalog can't be loaded (nothing is fetched)
        """
        summary = EnrichmentSummary(started_at=self._clock())
        logger.info("enrich_run_started", item_id=item_id)

        catalog = self.storage.load()
        self._requests_made = 0

        for gift, link in catalog.iter_links(item_id):
            try:
                result = await self.enrich_link(gift, link)
            except Exception as e:
                logger.exception("link_processing_failed", item_id=gift.id, url=link.url, error=str(e))
                result = LinkResult(
                    item_id=gift.id,
                    url=link.url,
                    status="fetch_failed",
                    error=str(e),
                )
            summary.record(result)

        if summary.enriched and not self.dry_run:
            self.storage.save(catalog)
            summary.written = True
            logger.info("catalog_written", path=str(self.storage.path), enriched=summary.enriched)
        elif summary.enriched:
            logger.info("dry_run_catalog_not_written", enriched=summary.enriched)
        else:
            logger.info("no_updates_needed")

        summary.completed_at = self._clock()
        summary.duration_seconds = (summary.completed_at - summary.started_at).total_seconds()

        logger.info(
            "enrich_run_completed",
            total=summary.total,
            enriched=summary.enriched,
            skipped=summary.skipped,
            failed=summary.failed,
            not_found=summary.not_found,
            written=summary.written,
            duration=summary.duration_seconds,
        )
        return summary

    def is_fresh(self, link: GiftLink, now: datetime) -> bool:
        """True if the link was enriched within the freshness window."""
        if not link.schema_fetched_at:
            return False

        fetched_at = link.fetched_at()
        if fetched_at is None:
            logger.warning("invalid_fetch_timestamp", url=link.url, value=link.schema_fetched_at)
            return False

        return now - fetched_at < self.freshness

    async def enrich_link(self, gift: Gift, link: GiftLink) -> LinkResult:
        """
        Enrich a single link in place.

        The link's schema and timestamp are only replaced together, and only
        when a non-empty schema was extracted.

        Returns:
            LinkResult describing what happened
        """
        start_time = time.monotonic()
        now = self._clock()

        if not self.force and self.is_fresh(link, now):
            age_days = (now - link.fetched_at()).total_seconds() / 86400
            logger.info("link_skipped_fresh", url=link.url, fetched_days_ago=round(age_days, 1))
            return LinkResult(item_id=gift.id, url=link.url, status="skipped_fresh")

        outcome, attempts = await self._fetch_with_retries(link.url)
        duration_ms = int((time.monotonic() - start_time) * 1000)

        if not isinstance(outcome, FetchSuccess):
            logger.warning(
                "link_fetch_failed",
                item_id=gift.id,
                url=link.url,
                kind=outcome.kind,
                error=outcome.message,
                attempts=attempts,
            )
            return LinkResult(
                item_id=gift.id,
                url=link.url,
                status="fetch_failed",
                error=outcome.message,
                attempts=attempts,
                duration_ms=duration_ms,
            )

        schema = self.extractor.extract(link.url, outcome.html)
        if schema is None:
            logger.info("no_product_schema_found", item_id=gift.id, url=link.url)
            return LinkResult(
                item_id=gift.id,
                url=link.url,
                status="not_found",
                attempts=attempts,
                duration_ms=duration_ms,
            )

        link.attach(schema, fetched_at=self._clock())
        logger.info("link_enriched", item_id=gift.id, url=link.url, name=schema.name)

        return LinkResult(
            item_id=gift.id,
            url=link.url,
            status="enriched",
            name=schema.name,
            attempts=attempts,
            duration_ms=duration_ms,
        )

    async def _paced_fetch(self, url: str) -> FetchOutcome:
        # Keep at least request_delay between consecutive requests
        if self._requests_made and self.request_delay > 0:
            logger.debug("rate_limit_delay", delay=self.request_delay)
            await self._sleep(self.request_delay)
        self._requests_made += 1
        return await self.fetcher.fetch(url)

    async def _fetch_with_retries(self, url: str) -> tuple[FetchOutcome, int]:
        """
        Fetch a URL, retrying transient failures with exponential backoff.

        Returns:
            Tuple of (final outcome, number of attempts)
        """
        attempt = 0
        while True:
            outcome = await self._paced_fetch(url)
            attempt += 1

            if not is_retryable(outcome) or attempt > self.max_retries:
                return outcome, attempt

            backoff = self.retry_backoff * (2 ** (attempt - 1))
            logger.warning(
                "link_fetch_retrying",
                url=url,
                attempt=attempt,
                kind=outcome.kind,
                backoff=backoff,
            )
            await self._sleep(backoff)
