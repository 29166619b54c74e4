from datetime import datetime, timedelta, timezone

import pytest

from courier_pricing.models.domain import (
    Coordinates,
    DeliveryZone,
    GeocodingResult,
    OrderTypeAdjustment,
    Promotion,
)
from courier_pricing.services.pricing import PricingCalculator

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class FakePricingStore:
    """In-memory stand-in for the Supabase pricing tables."""

    def __init__(self, zones=(), adjustments=(), promotions=(), order_counts=None):
        self.zones = list(zones)
        self.adjustments = list(adjustments)
        self.promotions = list(promotions)
        self.order_counts = order_counts or {}
        self.count_queries: list[tuple[str, str]] = []
        self.incremented: list[str] = []
        self.fail_zones = False
        self.fail_increment = False

    def fetch_active_zones(self):
        if self.fail_zones:
            raise ConnectionError("delivery_zones unavailable")
        return sorted((zone for zone in self.zones if zone.active), key=lambda zone: zone.min_distance)

    def fetch_active_adjustments(self):
        return [adjustment for adjustment in self.adjustments if adjustment.active]

    def fetch_active_promotions(self):
        return [promotion for promotion in self.promotions if promotion.active]

    def count_customer_orders(self, customer_id, status):
        self.count_queries.append((customer_id, status))
        return self.order_counts.get((customer_id, status), 0)

    def increment_promo_usage(self, promo_code):
        if self.fail_increment:
            raise ConnectionError("rpc failed")
        self.incremented.append(promo_code)
        return len(self.incremented)


class FakeGeocoder:
    def __init__(self, known: dict[str, Coordinates]):
        self.known = known
        self.calls: list[str] = []

    def geocode(self, address):
        self.calls.append(address)
        coordinates = self.known.get(address)
        if coordinates is None:
            return None
        return GeocodingResult(coordinates=coordinates, formatted_address=address)


def make_zones():
    return [
        DeliveryZone(id="z0", name="Zone A (0-3km)", min_distance=0, max_distance=3, base_price=500),
        DeliveryZone(id="z1", name="Zone B (3-10km)", min_distance=3, max_distance=10, base_price=1000),
        DeliveryZone(id="z2", name="Zone C (10-25km)", min_distance=10, max_distance=25, base_price=2000),
    ]


def make_adjustments():
    return [
        OrderTypeAdjustment(id="a1", name="Express Delivery", kind="flat", value=300),
        OrderTypeAdjustment(id="a2", name="Bulk / Heavy Items", kind="percentage", value=20),
        OrderTypeAdjustment(id="a3", name="Fragile Items", kind="flat", value=150, active=False),
    ]


def make_promotion(code: str = "SAVE50", **overrides) -> Promotion:
    values = dict(
        id=f"p-{code}",
        code=code,
        name=f"{code} promo",
        discount_kind="percentage",
        discount_value=50,
        min_order_value=0,
        max_discount=400,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=30),
    )
    values.update(overrides)
    return Promotion(**values)


@pytest.fixture
def store() -> FakePricingStore:
    return FakePricingStore(
        zones=make_zones(),
        adjustments=make_adjustments(),
        promotions=[
            make_promotion("SAVE50"),
            make_promotion("FLAT5000", discount_kind="flat", discount_value=5000, max_discount=None),
            make_promotion("FREESHIP", name="Free Delivery Week", discount_kind="free_delivery", discount_value=0),
            make_promotion("BIGORDER", discount_kind="flat", discount_value=200, min_order_value=10000),
            make_promotion("WELCOME", discount_kind="flat", discount_value=250, first_order_only=True),
            make_promotion("EXPIRED", end_date=NOW - timedelta(hours=1)),
            make_promotion("UPCOMING", start_date=NOW + timedelta(days=2)),
            make_promotion("USEDUP", usage_limit=10, usage_count=10),
        ],
    )


@pytest.fixture
def calculator(store: FakePricingStore) -> PricingCalculator:
    calc = PricingCalculator(store, clock=lambda: NOW)
    calc.initialize()
    return calc
