"""
Heuristic extractor for Amazon product pages.

Amazon doesn't publish JSON-LD Product data, so fields are scraped with
ordered CSS selector probes. Within each field the first probe that yields
a non-empty value wins.
"""

from typing import Any, Dict, List, Optional

import structlog
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from ..models import ProductSchema, SchemaBrand, SchemaOffer
from ._base import clean_text, extract_price_text, strip_brand_prefix

logger = structlog.get_logger(__name__, service="enricher")

# Amazon listings on amazon.com are priced in dollars
MARKETPLACE_CURRENCY = "USD"


class SelectorProbe(BaseModel):
    """One CSS selector, reading either an attribute or the element text."""

    selector: str
    attribute: Optional[str] = None

    def probe(self, soup: BeautifulSoup) -> Optional[str]:
        elem = soup.select_one(self.selector)
        if elem is None:
            return None

        if self.attribute:
            value = elem.get(self.attribute)
            if isinstance(value, list):
                value = " ".join(value)
            return value.strip() if value and value.strip() else None

        return clean_text(elem.get_text(" "))


class MarketplaceSelectors(BaseModel):
    """Ordered probes per field."""

    name: List[SelectorProbe] = Field(default_factory=list)
    price: List[SelectorProbe] = Field(default_factory=list)
    image: List[SelectorProbe] = Field(default_factory=list)
    brand: List[SelectorProbe] = Field(default_factory=list)

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]] = None) -> "MarketplaceSelectors":
        """
        Build selectors from settings, falling back to the defaults per field.

        Each field in the settings is a list of either plain selector strings
        or {"selector": ..., "attribute": ...} mappings.
        """
        selectors = DEFAULT_SELECTORS.model_copy(deep=True)
        for field_name, probes in (overrides or {}).items():
            if field_name not in cls.model_fields:
                raise ValueError(f"Unknown selector field: {field_name}")
            parsed = [
                SelectorProbe(selector=p) if isinstance(p, str) else SelectorProbe(**p)
                for p in probes
            ]
            setattr(selectors, field_name, parsed)
        return selectors


DEFAULT_SELECTORS = MarketplaceSelectors(
    name=[
        SelectorProbe(selector="#productTitle"),
        SelectorProbe(selector="#ebooksProductTitle"),
    ],
    price=[
        SelectorProbe(selector=".a-price .a-offscreen"),
        SelectorProbe(selector="#kindle-price"),
        SelectorProbe(selector="#price_inside_buybox"),
        SelectorProbe(selector="#priceblock_ourprice"),
        SelectorProbe(selector="#priceblock_dealprice"),
        SelectorProbe(selector=".a-color-price"),
    ],
    image=[
        SelectorProbe(selector="#landingImage", attribute="data-old-hires"),
        SelectorProbe(selector="#landingImage", attribute="src"),
        SelectorProbe(selector="#imgBlkFront", attribute="src"),
        SelectorProbe(selector="#ebooksImgBlkFront", attribute="src"),
        SelectorProbe(selector="#main-image", attribute="src"),
    ],
    brand=[
        SelectorProbe(selector="#bylineInfo"),
        SelectorProbe(selector=".author .contributorNameID"),
        SelectorProbe(selector=".author a"),
        SelectorProbe(selector="#brand"),
    ],
)


def first_match(soup: BeautifulSoup, probes: List[SelectorProbe]) -> Optional[str]:
    for probe in probes:
        value = probe.probe(soup)
        if value:
            return value
    return None


class MarketplaceExtractor:
    """Scrape product fields from marketplace markup."""

    def __init__(self, selectors: Optional[MarketplaceSelectors] = None):
        self.selectors = selectors or DEFAULT_SELECTORS

    def extract_name(self, soup: BeautifulSoup) -> Optional[str]:
        return first_match(soup, self.selectors.name)

    def extract_offer(self, soup: BeautifulSoup) -> Optional[SchemaOffer]:
        price = extract_price_text(first_match(soup, self.selectors.price))
        if not price:
            return None
        return SchemaOffer(price=price, price_currency=MARKETPLACE_CURRENCY)

    def extract_image(self, soup: BeautifulSoup) -> Optional[str]:
        image = first_match(soup, self.selectors.image)
        # Lazy-loaded placeholders are inline data URIs, not product images
        if image and image.lower().startswith("data:"):
            return None
        return image

    def extract_brand(self, soup: BeautifulSoup) -> Optional[SchemaBrand]:
        brand = strip_brand_prefix(first_match(soup, self.selectors.brand))
        return SchemaBrand(name=brand) if brand else None

    def extract(self, soup: BeautifulSoup) -> Optional[ProductSchema]:
        """
        Extract all fields from a marketplace page.

        Returns:
            ProductSchema, or None if name, offer and image are all missing
        """
        schema = ProductSchema.build(
            name=self.extract_name(soup),
            offers=self.extract_offer(soup),
            image=self.extract_image(soup),
            brand=self.extract_brand(soup),
        )

        if schema.is_empty():
            logger.debug("marketplace_fields_not_found")
            return None

        logger.debug(
            "marketplace_fields_extracted",
            name_found=schema.name is not None,
            price_found=schema.offers is not None,
            image_found=schema.image is not None,
            brand_found=schema.brand is not None,
        )
        return schema
