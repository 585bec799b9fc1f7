"""
Command-line entry point for link enrichment.

Usage:
    gift-enricher                              # Enrich stale links in the catalog
    gift-enricher --catalog path/to/gifts.json # Use a different catalog
    gift-enricher --item-id ID                 # Only one gift's links
    gift-enricher --force --dry-run            # Refetch everything, write nothing
    gift-enricher --verbose                    # Enable debug logging
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta
from typing import List, Optional

import structlog

from .config import load_config
from .enricher import LinkEnricher
from .extractors import DEFAULT_MARKETPLACE_FRAGMENTS, MarketplaceSelectors, ProductExtractor
from .fetcher import PageFetcher
from .models import EnrichmentSummary
from .storage import CatalogLoadError, CatalogStorage


def setup_logging(level: str = "INFO", log_format: str = "console"):
    """Configure structured logging."""
    if log_format == "json":
        # JSON output for parsing and storage
        renderer = structlog.processors.JSONRenderer()
    else:
        # Console output for human readability
        renderer = structlog.dev.ConsoleRenderer()

    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            [structlog.processors.CallsiteParameter.FILENAME]
        ),
        structlog.processors.format_exc_info,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Enrich gift links with product name, price, image and brand",
    )
    parser.add_argument(
        "--catalog",
        help="Path to catalog JSON (default: catalog.path from settings)",
    )
    parser.add_argument(
        "--config",
        help="Path to config file (default: bundled settings.yaml)",
    )
    parser.add_argument(
        "--item-id",
        help="Only enrich links of the gift with this id",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Fetch every link, ignoring the freshness window",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and extract but never write the catalog",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Seconds between requests (default: enricher.request_delay)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output summary as JSON",
    )
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        help="Log output format (default: logging.format from settings)",
    )
    return parser


def print_summary(summary: EnrichmentSummary) -> None:
    print("\n" + "=" * 70)
    print("Link Enrichment Summary")
    print("=" * 70)
    print(f"Links processed:   {summary.total}")
    print(f"Enriched:          {summary.enriched}")
    print(f"Skipped (fresh):   {summary.skipped}")
    print(f"No product data:   {summary.not_found}")
    print(f"Failed:            {summary.failed}")
    print(f"Duration:          {summary.duration_seconds or 0.0:.2f}s")
    print("=" * 70)

    if summary.failed > 0:
        print("\nFailed Links:")
        for result in summary.links:
            if result.status == "fetch_failed":
                print(f"  - [{result.item_id}] {result.url}: {result.error}")

    if summary.written:
        print("\n✓ Catalog updated with enriched data")
    else:
        print("\nNo updates needed")


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main execution function.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    # Load configuration before logging so the configured level applies
    try:
        config = load_config(args.config)
    except Exception as e:
        setup_logging("INFO", args.log_format or "console")
        structlog.get_logger().error("config_load_failed", error=str(e))
        return 1

    log_level = "DEBUG" if args.verbose else config["logging"].get("level", "INFO")
    setup_logging(log_level, args.log_format or config["logging"].get("format", "console"))
    logger = structlog.get_logger()

    fetcher_config = config["fetcher"]
    enricher_config = config["enricher"]
    marketplace_config = config["marketplace"]

    try:
        selectors = MarketplaceSelectors.from_config(marketplace_config.get("selectors"))
    except (TypeError, ValueError) as e:
        logger.error("selector_config_invalid", error=str(e))
        return 1

    catalog_path = args.catalog or config["catalog"].get("path", "public/data/gifts.json")
    request_delay = args.delay if args.delay is not None else enricher_config.get("request_delay", 1.0)

    fetcher = PageFetcher(
        timeout=fetcher_config.get("timeout", 20.0),
        **{
            key: fetcher_config[key]
            for key in ("user_agent", "accept", "accept_language")
            if fetcher_config.get(key)
        },
    )
    enricher = LinkEnricher(
        storage=CatalogStorage(catalog_path),
        fetcher=fetcher,
        extractor=ProductExtractor(
            domain_fragments=marketplace_config.get("domain_fragments") or DEFAULT_MARKETPLACE_FRAGMENTS,
            selectors=selectors,
        ),
        request_delay=request_delay,
        freshness=timedelta(hours=enricher_config.get("freshness_hours", 24)),
        max_retries=enricher_config.get("max_retries", 0),
        retry_backoff=enricher_config.get("retry_backoff", 2.0),
        force=args.force,
        dry_run=args.dry_run,
    )

    try:
        async with fetcher:
            summary = await enricher.enrich_all(item_id=args.item_id)
    except CatalogLoadError as e:
        logger.error("catalog_load_failed", path=catalog_path, error=str(e))
        return 1
    except Exception as e:
        logger.error("enrich_failed", error=str(e), exc_info=True)
        return 1

    if args.json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
    else:
        print_summary(summary)

    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        structlog.get_logger().info("interrupted_by_user")
        sys.exit(130)


if __name__ == "__main__":
    run()
