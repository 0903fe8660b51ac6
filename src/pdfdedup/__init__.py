"""Duplicate PDF attachment resolution for reference libraries."""

__version__ = "0.1.0"
