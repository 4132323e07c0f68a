"""Typed SQLite tables, script and envelope parsing, and offset tracking for an inscription indexer."""

__version__ = "0.1.0"