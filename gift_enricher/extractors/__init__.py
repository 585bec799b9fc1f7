"""
Product extraction: site classification and extractor dispatch.

Example:
    >>> from gift_enricher.extractors import ProductExtractor
    >>>
    >>> extractor = ProductExtractor()
    >>> schema = extractor.extract("https://shop.example.com/widget", html)
    >>> if schema:
    >>>     print(schema.name, schema.offers.price)
"""

from typing import Optional, Sequence
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup

from ..models import ProductSchema
from .jsonld import extract_jsonld_product
from .marketplace import MarketplaceExtractor, MarketplaceSelectors

logger = structlog.get_logger(__name__, service="enricher")

DEFAULT_MARKETPLACE_FRAGMENTS = ("amazon.com", "amazon.")


def is_marketplace_url(
    url: str,
    domain_fragments: Sequence[str] = DEFAULT_MARKETPLACE_FRAGMENTS,
) -> bool:
    """
    Check whether a URL belongs to the marketplace that needs heuristic extraction.

    Matches fragments as substrings of the hostname so country sites
    (amazon.co.uk, amazon.de, ...) are covered too.

    Args:
        url: Product URL
        domain_fragments: Hostname fragments identifying the marketplace

    Returns:
        True if the hostname contains any fragment, False otherwise or if
        the URL can't be parsed
    """
    try:
        hostname = urlparse(url).hostname
    except (TypeError, ValueError):
        return False

    if not hostname:
        return False

    return any(fragment in hostname for fragment in domain_fragments)


class ProductExtractor:
    """Pick the extraction path for a URL and apply it to fetched HTML."""

    def __init__(
        self,
        domain_fragments: Sequence[str] = DEFAULT_MARKETPLACE_FRAGMENTS,
        selectors: Optional[MarketplaceSelectors] = None,
    ):
        self.domain_fragments = tuple(domain_fragments)
        self.marketplace = MarketplaceExtractor(selectors)

    def is_marketplace(self, url: str) -> bool:
        return is_marketplace_url(url, self.domain_fragments)

    def extract(self, url: str, html: str) -> Optional[ProductSchema]:
        """
        Extract normalized product metadata.

        Args:
            url: URL the HTML was fetched from (selects the extraction path)
            html: Page HTML content

        Returns:
            ProductSchema, or None if nothing worth attaching was found
        """
        soup = BeautifulSoup(html, "lxml")

        if self.is_marketplace(url):
            logger.info("using_marketplace_extractor", url=url)
            schema = self.marketplace.extract(soup)
        else:
            schema = extract_jsonld_product(soup)

        if schema is None or schema.is_empty():
            return None
        return schema


__all__ = [
    "DEFAULT_MARKETPLACE_FRAGMENTS",
    "MarketplaceExtractor",
    "MarketplaceSelectors",
    "ProductExtractor",
    "extract_jsonld_product",
    "is_marketplace_url",
]
