"""Delivery pricing services."""

from .bulk import BulkOrderError, price_bulk_order, volume_discount_percentage
from .calculator import (
    NoZoneForDistanceError,
    PricingCalculator,
    PricingConfigurationError,
    PricingNotInitializedError,
    PricingSnapshot,
)
from .promotions import compute_discount, is_promotion_usable

__all__ = [
    "PricingCalculator",
    "PricingSnapshot",
    "NoZoneForDistanceError",
    "PricingNotInitializedError",
    "PricingConfigurationError",
    "BulkOrderError",
    "price_bulk_order",
    "volume_discount_percentage",
    "compute_discount",
    "is_promotion_usable",
]
