"""CLI entry point for python -m gift_enricher."""

from .cli import run

run()
