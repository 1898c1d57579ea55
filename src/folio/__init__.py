"""Folio: full-text search over documentation collections."""

__version__ = "0.1.0"
