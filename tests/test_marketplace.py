"""Tests for the marketplace heuristic extractor."""

import pytest
from bs4 import BeautifulSoup

from gift_enricher.extractors.marketplace import (
    DEFAULT_SELECTORS,
    MarketplaceExtractor,
    MarketplaceSelectors,
    SelectorProbe,
)


def _soup(html):
    return BeautifulSoup(html, "lxml")


class TestMarketplaceExtractor:
    """Test selector-based extraction."""

    def test_extract_all_fields(self, marketplace_html):
        schema = MarketplaceExtractor().extract(_soup(marketplace_html))

        assert schema.name == "Noise Cancelling Headphones"
        assert schema.offers.price == "1234.56"
        assert schema.offers.price_currency == "USD"
        assert schema.image == "https://m.media-amazon.com/images/I/large.jpg"
        assert schema.brand.name == "Acme"

    def test_ebook_title_fallback(self):
        html = '<html><body><span id="ebooksProductTitle">A Novel</span></body></html>'

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.name == "A Novel"

    def test_price_fallback_order(self):
        html = """
        <html><body>
            <span id="productTitle">Thing</span>
            <span id="priceblock_dealprice">$15.00</span>
            <span class="a-color-price">$99.00</span>
        </body></html>
        """

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.offers.price == "15.00"

    def test_empty_primary_price_falls_through(self):
        html = """
        <html><body>
            <span id="productTitle">Thing</span>
            <div class="a-price"><span class="a-offscreen"> </span></div>
            <span id="kindle-price">Kindle Price: $4.99</span>
        </body></html>
        """

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.offers.price == "4.99"

    def test_image_src_fallback(self):
        html = """
        <html><body>
            <span id="productTitle">Thing</span>
            <img id="imgBlkFront" src="https://m.media-amazon.com/images/I/book.jpg" />
        </body></html>
        """

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.image == "https://m.media-amazon.com/images/I/book.jpg"

    def test_data_uri_image_is_discarded(self):
        html = """
        <html><body>
            <span id="productTitle">Thing</span>
            <img id="landingImage" src="data:image/gif;base64,R0lGODlhAQABAAAAACw=" />
        </body></html>
        """

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.image is None
        assert "image" not in schema.model_dump(by_alias=True, exclude_unset=True)

    def test_author_byline(self):
        html = """
        <html><body>
            <span id="productTitle">Thing</span>
            <span class="author"><a href="/jane">by Jane Doe</a></span>
        </body></html>
        """

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.brand.name == "Jane Doe"

    def test_nothing_found_returns_none(self):
        html = "<html><body><div id='captcha'>Enter the characters you see</div></body></html>"

        assert MarketplaceExtractor().extract(_soup(html)) is None

    def test_price_only_is_kept(self):
        html = '<html><body><span id="priceblock_ourprice">$29.99</span></body></html>'

        schema = MarketplaceExtractor().extract(_soup(html))

        assert schema.name is None
        assert schema.offers.price == "29.99"


class TestSelectorConfig:
    """Test selector overrides from settings."""

    def test_defaults_when_no_overrides(self):
        selectors = MarketplaceSelectors.from_config(None)

        assert selectors == DEFAULT_SELECTORS
        assert selectors.name[0].selector == "#productTitle"

    def test_override_single_field(self):
        selectors = MarketplaceSelectors.from_config(
            {"price": [".new-price", {"selector": "#deal", "attribute": "data-amount"}]}
        )

        assert selectors.price == [
            SelectorProbe(selector=".new-price"),
            SelectorProbe(selector="#deal", attribute="data-amount"),
        ]
        # Other fields keep their defaults
        assert selectors.image == DEFAULT_SELECTORS.image

    def test_override_does_not_mutate_defaults(self):
        MarketplaceSelectors.from_config({"name": ["h1"]})

        assert DEFAULT_SELECTORS.name[0].selector == "#productTitle"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            MarketplaceSelectors.from_config({"colour": [".swatch"]})

    def test_custom_selectors_are_used(self):
        selectors = MarketplaceSelectors.from_config({"name": ["h1.title"]})
        html = '<html><body><h1 class="title">Custom</h1><span id="productTitle">Default</span></body></html>'

        schema = MarketplaceExtractor(selectors).extract(_soup(html))

        assert schema.name == "Custom"
