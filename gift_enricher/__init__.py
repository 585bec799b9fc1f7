"""Enrich gift list links with normalized product metadata."""

__version__ = "0.1.0"
