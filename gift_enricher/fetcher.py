"""Fetch product pages over HTTP."""

from typing import Dict, Optional

import httpx
import structlog

from .models import (
    FetchHttpError,
    FetchNetworkError,
    FetchOutcome,
    FetchParseError,
    FetchSuccess,
)

logger = structlog.get_logger(__name__, service="enricher")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.5"


class PageFetcher:
    """
    Single-request page fetcher with browser-like headers.

    Never raises for request failures: every call returns a FetchOutcome.
    Retries are the caller's decision.

    Example:
        >>> async with PageFetcher(timeout=20.0) as fetcher:
        >>>     outcome = await fetcher.fetch("https://example.com/product")
    """

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        accept: str = DEFAULT_ACCEPT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize fetcher.

        Args:
            timeout: Request timeout (seconds)
            user_agent: User-Agent header sent with every request
            accept: Accept header
            accept_language: Accept-Language header
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.headers: Dict[str, str] = {
            "User-Agent": user_agent,
            "Accept": accept,
            "Accept-Language": accept_language,
        }
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchOutcome:
        """
        GET a page.

        Args:
            url: Page URL

        Returns:
            FetchSuccess with the body on 2xx, FetchHttpError for any other
            status, FetchNetworkError on transport failure, FetchParseError
            if the URL or the response body can't be handled
        """
        logger.info("fetching_page", url=url)
        client = self._get_client()

        try:
            response = await client.get(url)
        except httpx.InvalidURL as e:
            logger.error("invalid_url", url=url, error=str(e))
            return FetchParseError(url=url, message=f"Invalid URL: {e}")
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
            logger.error("page_fetch_failed", url=url, error=message, error_type=type(e).__name__)
            return FetchNetworkError(url=url, message=message)

        if not response.is_success:
            logger.error("page_fetch_http_error", url=url, status_code=response.status_code)
            return FetchHttpError(url=url, status_code=response.status_code)

        try:
            html = response.text
        except (LookupError, UnicodeDecodeError) as e:
            logger.error("page_decode_failed", url=url, error=str(e))
            return FetchParseError(url=url, message=f"Could not decode response: {e}")

        logger.debug(
            "page_fetch_success",
            url=url,
            status_code=response.status_code,
            html_length=len(html),
        )
        return FetchSuccess(url=url, html=html, status_code=response.status_code)
