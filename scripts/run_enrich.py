#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "httpx>=0.25.0",
#     "beautifulsoup4>=4.12.0",
#     "lxml>=4.9.0",
#     "pyyaml>=6.0",
#     "pydantic>=2.0.0",
#     "structlog>=23.1.0",
# ]
# ///
"""
Manual execution script for link enrichment.

Usage:
    uv run scripts/run_enrich.py                       # Enrich stale links
    uv run scripts/run_enrich.py --catalog gifts.json  # Use a specific catalog
    uv run scripts/run_enrich.py --force --dry-run     # Refetch all, write nothing
"""

import sys
from pathlib import Path

# Add repository root to path so the package imports without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from gift_enricher.cli import run

if __name__ == "__main__":
    run()
