"""Shared decoders and text helpers for product extractors."""

import re
from typing import Any, Optional

from ..models import SchemaBrand, SchemaOffer

PRICE_PATTERN = re.compile(r"[\d.,]+")
BRAND_PREFIX_PATTERN = re.compile(r"^(by|visit the)\s+", re.IGNORECASE)
STORE_SUFFIX_PATTERN = re.compile(r"\s+store$", re.IGNORECASE)


def clean_text(text: Optional[str]) -> Optional[str]:
    """
    Collapse whitespace and strip.

    Args:
        text: Raw text

    Returns:
        Cleaned text or None if nothing is left
    """
    if not text:
        return None

    text = re.sub(r"\s+", " ", str(text)).strip()
    return text if text else None


def extract_price_text(text: Optional[str]) -> Optional[str]:
    """
    Pull the numeric part out of a displayed price.

    Takes the first run of digits, commas and periods and drops the
    thousands separators: "$1,234.56" -> "1234.56".
    """
    if not text:
        return None

    match = PRICE_PATTERN.search(text)
    if not match:
        return None

    value = match.group(0).replace(",", "")
    # A lone "." or "," is not a price
    if not any(ch.isdigit() for ch in value):
        return None
    return value


def strip_brand_prefix(text: Optional[str]) -> Optional[str]:
    """
    Strip byline prefixes from a brand/author string.

    "by Jane Doe" -> "Jane Doe"
    "Visit the Jane Doe Store" -> "Jane Doe"
    """
    text = clean_text(text)
    if not text:
        return None

    match = BRAND_PREFIX_PATTERN.match(text)
    if match:
        text = text[match.end():]
        if match.group(1).lower() == "visit the":
            text = STORE_SUFFIX_PATTERN.sub("", text)

    text = text.strip()
    return text if text else None


def stringify_price(value: Any) -> Optional[str]:
    """
    Render a JSON-LD price value as a decimal string.

    Integral floats lose their fractional part (20.0 -> "20") so numbers
    read back from JSON look the way they were written.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (int, str)):
        text = str(value).strip()
        return text if text else None
    return None


# JSON-LD values are loosely typed; each decoder below handles every shape
# the field is published in and returns None for anything else.


def decode_image(value: Any) -> Optional[str]:
    """Image: string | [string, ...] | {"url": string}."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, list):
        if not value:
            return None
        first = value[0]
        if isinstance(first, dict):
            return decode_image(first)
        return first if isinstance(first, str) and first else None
    if isinstance(value, dict):
        url = value.get("url")
        return url if isinstance(url, str) and url else None
    return None


def decode_brand(value: Any) -> Optional[SchemaBrand]:
    """Brand: string | {"name": string}."""
    if isinstance(value, str):
        return SchemaBrand(name=value) if value else None
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str) and name:
            return SchemaBrand(name=name)
    return None


def decode_offer(value: Any) -> Optional[SchemaOffer]:
    """
    Offers: {...} | [{...}, ...].

    Only the first offer is used. "price" wins over "lowPrice"; an offer with
    neither is dropped. Currency defaults to USD.
    """
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, dict):
        return None

    price = stringify_price(value.get("price") or value.get("lowPrice"))
    if not price:
        return None

    currency = value.get("priceCurrency")
    if not isinstance(currency, str) or not currency:
        currency = "USD"

    return SchemaOffer(price=price, price_currency=currency)
