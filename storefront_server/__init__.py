"""Storefront catalog and cart server."""

__version__ = "0.1.0"
