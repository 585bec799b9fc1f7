"""Extract product metadata from embedded JSON-LD blocks."""

import json
from typing import Any, Dict, Iterator, List, Optional

import structlog
from bs4 import BeautifulSoup

from ..models import ProductSchema
from ._base import decode_brand, decode_image, decode_offer

logger = structlog.get_logger(__name__, service="enricher")

JSONLD_CONTENT_TYPE = "application/ld+json"


def _is_jsonld(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.strip().lower() == JSONLD_CONTENT_TYPE


def _is_product(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Product" in node_type
    return node_type == "Product"


def iter_jsonld_payloads(soup: BeautifulSoup) -> Iterator[Any]:
    """
    Yield every parseable JSON-LD payload in document order.

    Blocks that fail to parse are logged and skipped.
    """
    for index, script in enumerate(soup.find_all("script", type=_is_jsonld)):
        content = script.string or script.get_text()
        if not content or not content.strip():
            continue
        try:
            yield json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("jsonld_parse_failed", block=index, error=str(e))


def find_product_node(payload: Any) -> Optional[Dict[str, Any]]:
    """
    Find the Product node in a single JSON-LD payload.

    The payload may be one object or a list of objects. Each object is either
    a Product itself or carries the Product inside its "@graph".
    """
    items: List[Any] = payload if isinstance(payload, list) else [payload]

    for item in items:
        if not isinstance(item, dict):
            continue
        if _is_product(item):
            return item

        graph = item.get("@graph")
        if isinstance(graph, list):
            for node in graph:
                if _is_product(node):
                    return node

    return None


def map_product_node(node: Dict[str, Any]) -> ProductSchema:
    """Map a raw schema.org Product node to the normalized schema."""
    name = node.get("name")
    if not isinstance(name, str):
        name = ""

    return ProductSchema.build(
        name=name,
        image=decode_image(node.get("image")),
        brand=decode_brand(node.get("brand")),
        offers=decode_offer(node.get("offers")),
    )


def extract_jsonld_product(soup: BeautifulSoup) -> Optional[ProductSchema]:
    """
    Extract the first Product found across all JSON-LD blocks.

    Args:
        soup: Parsed page

    Returns:
        ProductSchema, or None if no block describes a Product
    """
    for payload in iter_jsonld_payloads(soup):
        node = find_product_node(payload)
        if node is not None:
            return map_product_node(node)

    logger.debug("jsonld_product_not_found")
    return None
