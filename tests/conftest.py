"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import httpx
import pytest
import structlog

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo structlog configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def jsonld_html():
    """Product page with a top-level JSON-LD Product."""
    return """
<!DOCTYPE html>
<html>
<head>
    <script type="application/ld+json">
    {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": "Sample Product",
        "image": ["https://example.com/product.jpg", "https://example.com/alt.jpg"],
        "brand": {"@type": "Brand", "name": "Acme"},
        "offers": {
            "@type": "Offer",
            "price": "99.99",
            "priceCurrency": "EUR",
            "availability": "https://schema.org/InStock"
        }
    }
    </script>
</head>
<body><h1>Sample Product</h1></body>
</html>
"""


@pytest.fixture
def marketplace_html():
    """Amazon-style product page without structured data."""
    return """
<!DOCTYPE html>
<html>
<body>
    <span id="productTitle">
        Noise Cancelling Headphones
    </span>
    <a id="bylineInfo" href="/stores/acme">Visit the Acme Store</a>
    <div class="a-price"><span class="a-offscreen">$1,234.56</span></div>
    <img id="landingImage"
         data-old-hires="https://m.media-amazon.com/images/I/large.jpg"
         src="https://m.media-amazon.com/images/I/small.jpg" />
</body>
</html>
"""


@pytest.fixture
def catalog_data():
    """Catalog with one gift and one never-enriched link."""
    return {
        "gifts": [
            {
                "id": "1",
                "title": "Widget",
                "description": "A useful widget",
                "category": "tech",
                "priority": "high",
                "priceRange": "$10-$30",
                "purchased": False,
                "links": [
                    {"url": "https://shop.example.com/widget", "store": "Example Shop"},
                ],
            }
        ]
    }


@pytest.fixture
def write_catalog(tmp_path):
    """Write a catalog dict to disk the way the front-end repo stores it."""

    def _write(data, name="gifts.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mock_transport():
    """
    Build an httpx.MockTransport from a {url: response} mapping.

    Values are HTML strings (served with 200), ints (status code with empty
    body) or exceptions to raise. Every request is appended to `.requests`.
    """

    def _build(routes):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            route = routes.get(str(request.url))
            if route is None:
                return httpx.Response(404, text="not found")
            if isinstance(route, Exception):
                raise route
            if isinstance(route, int):
                return httpx.Response(route)
            return httpx.Response(200, text=route, headers={"Content-Type": "text/html; charset=utf-8"})

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return _build
