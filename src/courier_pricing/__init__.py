"""Delivery pricing and distance estimation service."""

__version__ = "0.1.0"
