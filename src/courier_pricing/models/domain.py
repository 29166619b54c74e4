"""Domain models for delivery pricing configuration and results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

AdjustmentKind = Literal["flat", "percentage"]
DiscountKind = Literal["flat", "percentage", "free_delivery"]


@dataclass(slots=True, frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(slots=True, frozen=True)
class GeocodingResult:
    """Best match returned by the geocoding provider for a free-text address."""

    coordinates: Coordinates
    formatted_address: str


@dataclass(slots=True, frozen=True)
class DistanceEstimate:
    distance: float
    pickup_coords: Coordinates
    delivery_coords: Coordinates


@dataclass(slots=True)
class DeliveryZone:
    """Distance band [min_distance, max_distance) with a base delivery price."""

    id: str
    name: str
    min_distance: float
    max_distance: float
    base_price: float
    active: bool = True

    def covers(self, distance: float) -> bool:
        return self.min_distance <= distance < self.max_distance


@dataclass(slots=True)
class OrderTypeAdjustment:
    """Named surcharge applied when a caller-selected order-type tag matches."""

    id: str
    name: str
    kind: AdjustmentKind
    value: float
    active: bool = True


@dataclass(slots=True)
class Promotion:
    """Code-activated discount with eligibility constraints."""

    id: str
    code: str
    name: str
    discount_kind: DiscountKind
    discount_value: float
    min_order_value: float = 0.0
    max_discount: Optional[float] = None
    active: bool = True
    first_order_only: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0


@dataclass(slots=True, frozen=True)
class AdjustmentLine:
    name: str
    amount: float


@dataclass(slots=True, frozen=True)
class PricingBreakdown:
    """Itemized price returned for display and for locking in the charged amount."""

    distance: float
    zone_name: str
    base_price: float
    adjustments: tuple[AdjustmentLine, ...]
    subtotal: float
    discount: float
    final_price: float
    discount_name: Optional[str] = None
    promo_applied: Optional[str] = None


@dataclass(slots=True, frozen=True)
class BulkLineItem:
    """One delivery inside a corporate bulk order."""

    distance: float
    adjustments: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class BulkPricingSummary:
    items: tuple[PricingBreakdown, ...]
    total_fee: float
    discount_percentage: float
    discount_amount: float
    final_fee: float
