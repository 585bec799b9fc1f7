"""Data models for the gift catalog and enrichment runs."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

logger = structlog.get_logger(__name__, service="enricher")


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(dt: Optional[datetime] = None) -> str:
    """
    Format datetime the way the catalog stores enrichment timestamps.

    The front-end parses these with the browser's Date, so we keep the
    millisecond precision and "Z" suffix: "YYYY-MM-DDTHH:MM:SS.mmmZ".

    Args:
        dt: Datetime to format (defaults to current UTC time). Naive values
            are assumed to already be UTC.

    Returns:
        Formatted timestamp string
    """
    if dt is None:
        dt = utcnow()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a stored enrichment timestamp.

    Returns:
        Timezone-aware datetime, or None if missing or unparseable
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class CatalogModel(BaseModel):
    """
    Base for catalog documents: keep unknown keys, accept field names or aliases.

    The catalog is hand-edited, so numbers where strings are expected (a
    numeric id or price) are read as strings instead of failing the load.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)


class SchemaOffer(CatalogModel):
    """Normalized offer: price as a decimal string plus currency code."""

    price: str
    price_currency: str = Field(default="USD", alias="priceCurrency")


class SchemaBrand(CatalogModel):
    name: str


class ProductSchema(CatalogModel):
    """Normalized product metadata attached to a link."""

    type_: Literal["Product"] = Field(default="Product", alias="@type")
    name: Optional[str] = None
    image: Optional[str] = None
    brand: Optional[SchemaBrand] = None
    offers: Optional[SchemaOffer] = None

    @classmethod
    def build(
        cls,
        name: Optional[str] = None,
        image: Optional[str] = None,
        brand: Optional[SchemaBrand] = None,
        offers: Optional[SchemaOffer] = None,
    ) -> "ProductSchema":
        """
        Create a schema that serializes only the fields that were found.

        Catalog documents are dumped with exclude_unset, so passing None
        explicitly would write "null" keys the front-end doesn't expect.
        """
        fields = {"type_": "Product"}
        if name is not None:
            fields["name"] = name
        if image is not None:
            fields["image"] = image
        if brand is not None:
            fields["brand"] = brand
        if offers is not None:
            fields["offers"] = offers
        return cls(**fields)

    def is_empty(self) -> bool:
        """True if neither name, offer nor image could be determined."""
        return not self.name and self.offers is None and not self.image


class GiftLink(CatalogModel):
    """A store link for a gift. The unit of enrichment."""

    url: str
    store: str = ""
    product_schema: Optional[ProductSchema] = Field(default=None, alias="schema")
    schema_fetched_at: Optional[str] = Field(default=None, alias="schemaFetchedAt")

    _attached: bool = PrivateAttr(default=False)

    @field_validator("product_schema", mode="wrap")
    @classmethod
    def _lenient_schema(cls, value: Any, handler):
        # A malformed stored schema is replaced on the next successful fetch
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning("stored_schema_invalid", errors=e.error_count())
            return None

    @property
    def attached(self) -> bool:
        """True if a schema was attached during this run."""
        return self._attached

    def fetched_at(self) -> Optional[datetime]:
        return parse_timestamp(self.schema_fetched_at)

    def attach(self, schema: ProductSchema, fetched_at: datetime) -> None:
        """Attach a schema and its timestamp together."""
        self.product_schema = schema
        self.schema_fetched_at = format_timestamp(fetched_at)
        self._attached = True


class Gift(CatalogModel):
    """A wish-list item. The purchased flag is owned by the front-end."""

    id: str
    title: str
    description: str = ""
    category: str = "other"
    priority: str = "medium"
    price_range: str = Field(default="", alias="priceRange")
    purchased: bool = False
    links: List[GiftLink] = Field(default_factory=list)


class GiftsData(CatalogModel):
    """The whole catalog document."""

    gifts: List[Gift] = Field(default_factory=list)

    _document: Optional[Dict[str, Any]] = PrivateAttr(default=None)

    @classmethod
    def from_document(cls, data: Any) -> "GiftsData":
        """Validate a parsed catalog document and remember it for writing back."""
        catalog = cls.model_validate(data)
        catalog._document = data
        return catalog

    def to_document(self) -> Dict[str, Any]:
        """
        Build the document to write back.

        Attached schemas and timestamps are patched into the loaded document,
        so every other key keeps its value and position. Keys a link
        didn't have yet are appended.
        """
        if self._document is None:
            return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

        for gift, raw_gift in zip(self.gifts, self._document.get("gifts", [])):
            for link, raw_link in zip(gift.links, raw_gift.get("links", [])):
                if not link.attached:
                    continue
                raw_link["schema"] = link.product_schema.model_dump(
                    mode="json", by_alias=True, exclude_unset=True
                )
                raw_link["schemaFetchedAt"] = link.schema_fetched_at
        return self._document

    def iter_links(self, item_id: Optional[str] = None):
        """Yield (gift, link) pairs in document order."""
        for gift in self.gifts:
            if item_id is not None and gift.id != item_id:
                continue
            for link in gift.links:
                yield gift, link


class FetchSuccess(BaseModel):
    kind: Literal["success"] = "success"
    url: str
    html: str
    status_code: int = 200


class FetchHttpError(BaseModel):
    kind: Literal["http_error"] = "http_error"
    url: str
    status_code: int

    @property
    def message(self) -> str:
        return f"HTTP {self.status_code}"


class FetchNetworkError(BaseModel):
    kind: Literal["network_error"] = "network_error"
    url: str
    message: str


class FetchParseError(BaseModel):
    kind: Literal["parse_error"] = "parse_error"
    url: str
    message: str


FetchOutcome = Union[FetchSuccess, FetchHttpError, FetchNetworkError, FetchParseError]

LinkStatus = Literal["enriched", "skipped_fresh", "fetch_failed", "not_found"]


class LinkResult(BaseModel):
    """Result of processing a single link."""

    item_id: str
    url: str
    status: LinkStatus
    name: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0
    duration_ms: int = 0


class EnrichmentSummary(BaseModel):
    """Summary of an enrichment run."""

    total: int = 0
    enriched: int = 0
    skipped: int = 0
    failed: int = 0
    not_found: int = 0
    written: bool = False
    links: List[LinkResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def record(self, result: LinkResult) -> None:
        self.links.append(result)
        self.total += 1
        if result.status == "enriched":
            self.enriched += 1
        elif result.status == "skipped_fresh":
            self.skipped += 1
        elif result.status == "fetch_failed":
            self.failed += 1
        else:
            self.not_found += 1
