"""Tests for shared extractor decoders and text helpers."""

import pytest

from gift_enricher.extractors._base import (
    clean_text,
    decode_brand,
    decode_image,
    decode_offer,
    extract_price_text,
    strip_brand_prefix,
    stringify_price,
)


class TestTextHelpers:
    """Test text cleaning helpers."""

    def test_clean_text_collapses_whitespace(self):
        assert clean_text("  Noise\n   Cancelling\tHeadphones  ") == "Noise Cancelling Headphones"

    def test_clean_text_empty(self):
        assert clean_text("   ") is None
        assert clean_text(None) is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("$1,234.56", "1234.56"),
            ("$29.99", "29.99"),
            ("$1,234,567.00", "1234567.00"),
            ("Kindle Price: $9.99", "9.99"),
            ("No price", None),
            ("", None),
        ],
    )
    def test_extract_price_text(self, text, expected):
        assert extract_price_text(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("by Jane Doe", "Jane Doe"),
            ("By Jane Doe", "Jane Doe"),
            ("visit the Jane Doe Store", "Jane Doe"),
            ("Visit the Acme Store", "Acme"),
            ("Jane Doe", "Jane Doe"),
            ("Standby Press", "Standby Press"),
            ("Store by the Sea", "Store by the Sea"),
        ],
    )
    def test_strip_brand_prefix(self, text, expected):
        assert strip_brand_prefix(text) == expected


class TestDecoders:
    """Test JSON-LD field decoders."""

    def test_decode_image_string(self):
        assert decode_image("https://example.com/a.jpg") == "https://example.com/a.jpg"

    def test_decode_image_list(self):
        assert decode_image(["https://example.com/a.jpg", "https://example.com/b.jpg"]) == "https://example.com/a.jpg"

    def test_decode_image_object(self):
        assert decode_image({"@type": "ImageObject", "url": "https://example.com/a.jpg"}) == "https://example.com/a.jpg"

    def test_decode_image_unsupported(self):
        assert decode_image(42) is None
        assert decode_image([]) is None
        assert decode_image({"contentUrl": "x"}) is None

    def test_decode_brand(self):
        assert decode_brand("Acme").name == "Acme"
        assert decode_brand({"@type": "Brand", "name": "Acme"}).name == "Acme"
        assert decode_brand({"@type": "Brand"}) is None
        assert decode_brand(None) is None

    def test_decode_offer_object(self):
        offer = decode_offer({"price": "19.99", "priceCurrency": "GBP"})

        assert offer.price == "19.99"
        assert offer.price_currency == "GBP"

    def test_decode_offer_list_uses_first(self):
        offer = decode_offer([{"price": 10}, {"price": 20}])

        assert offer.price == "10"
        assert offer.price_currency == "USD"

    def test_decode_offer_low_price(self):
        offer = decode_offer({"@type": "AggregateOffer", "lowPrice": 5.5, "highPrice": 9})

        assert offer.price == "5.5"

    def test_decode_offer_without_price(self):
        assert decode_offer({"priceCurrency": "USD"}) is None
        assert decode_offer([]) is None
        assert decode_offer("19.99") is None

    def test_stringify_price(self):
        assert stringify_price(20.0) == "20"
        assert stringify_price(19.99) == "19.99"
        assert stringify_price(7) == "7"
        assert stringify_price(" 3.50 ") == "3.50"
        assert stringify_price(True) is None
