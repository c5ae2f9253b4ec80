"""Storefront access control and notification fan-out."""

__version__ = "0.3.0"
