import logging

import pytest

from courier_pricing.models.domain import AdjustmentLine, DeliveryZone
from courier_pricing.services.pricing import (
    NoZoneForDistanceError,
    PricingCalculator,
    PricingConfigurationError,
    PricingNotInitializedError,
)

from conftest import NOW, FakePricingStore, make_promotion, make_zones


def test_find_zone_uses_half_open_bands(calculator: PricingCalculator):
    assert calculator.find_zone(2.9).id == "z0"
    assert calculator.find_zone(3.0).id == "z1"
    assert calculator.find_zone(9.999).id == "z1"
    assert calculator.find_zone(25.0) is None


def test_find_zone_first_match_wins_for_overlapping_bands():
    zones = make_zones() + [
        DeliveryZone(id="overlap", name="Overlap", min_distance=2, max_distance=5, base_price=9999),
    ]
    calc = PricingCalculator(FakePricingStore(zones=zones), clock=lambda: NOW)
    calc.initialize()

    assert calc.find_zone(2.5).id == "z0"
    assert calc.find_zone(4.0).id == "overlap"
    assert calc.find_zone(5.0).id == "z1"


def test_find_adjustment_is_case_insensitive_and_skips_inactive(calculator: PricingCalculator):
    assert calculator.find_adjustment("express delivery").id == "a1"
    assert calculator.find_adjustment("BULK / HEAVY ITEMS").id == "a2"
    assert calculator.find_adjustment("Fragile Items") is None
    assert calculator.find_adjustment("Same Day") is None


def test_price_composes_flat_and_percentage_adjustments(calculator: PricingCalculator):
    breakdown = calculator.price(5.0, ["Express Delivery", "Bulk / Heavy Items"], 0, None)

    assert breakdown.zone_name == "Zone B (3-10km)"
    assert breakdown.base_price == 1000
    assert breakdown.adjustments == (
        AdjustmentLine(name="Express Delivery", amount=300),
        AdjustmentLine(name="Bulk / Heavy Items", amount=200),
    )
    assert breakdown.subtotal == 1500
    assert breakdown.discount == 0
    assert breakdown.final_price == 1500
    assert breakdown.discount_name is None
    assert breakdown.promo_applied is None


def test_price_keeps_caller_tag_order_and_ignores_unknown_tags(calculator: PricingCalculator):
    breakdown = calculator.price(1.0, ["Bulk / Heavy Items", "Teleport", "express delivery"])

    assert [line.name for line in breakdown.adjustments] == ["Bulk / Heavy Items", "Express Delivery"]
    assert breakdown.subtotal == 500 + 100 + 300


def test_price_percentage_promotion_is_capped(calculator: PricingCalculator):
    promotion = calculator.find_promotion("SAVE50")
    breakdown = calculator.price(5.0, ["Express Delivery", "Bulk / Heavy Items"], 0, promotion)

    assert breakdown.discount == 400
    assert breakdown.final_price == 1100
    assert breakdown.discount_name == "SAVE50 promo"
    assert breakdown.promo_applied == "SAVE50"


def test_price_free_delivery_zeroes_the_order(calculator: PricingCalculator):
    promotion = calculator.find_promotion("freeship")
    breakdown = calculator.price(12.0, ["Express Delivery"], 0, promotion)

    assert breakdown.subtotal == 2300
    assert breakdown.discount == 2300
    assert breakdown.final_price == 0
    assert breakdown.discount_name == "Free Delivery Week"


def test_price_flat_discount_never_goes_negative(calculator: PricingCalculator):
    promotion = calculator.find_promotion("FLAT5000")
    breakdown = calculator.price(1.0, [], 0, promotion)

    assert breakdown.discount == 500
    assert breakdown.final_price == 0


def test_price_outside_every_zone_raises(calculator: PricingCalculator):
    with pytest.raises(NoZoneForDistanceError) as excinfo:
        calculator.price(25.0)
    assert excinfo.value.distance == 25.0
    assert "25.0km" in str(excinfo.value)


def test_validate_promo_code_rules(calculator: PricingCalculator):
    assert calculator.validate_promo_code("save50", "cust-1", 0).code == "SAVE50"
    assert calculator.validate_promo_code("NOPE", "cust-1", 0) is None
    assert calculator.validate_promo_code("BIGORDER", "cust-1", 9999.99) is None
    assert calculator.validate_promo_code("BIGORDER", "cust-1", 10000).code == "BIGORDER"


def test_expired_upcoming_and_exhausted_promotions_are_filtered_at_load(calculator: PricingCalculator):
    for code in ("EXPIRED", "UPCOMING", "USEDUP"):
        assert calculator.find_promotion(code) is None
        assert calculator.validate_promo_code(code, "cust-1", 50000) is None


def test_first_order_promo_counts_completed_orders(store: FakePricingStore, calculator: PricingCalculator):
    assert calculator.validate_promo_code("WELCOME", "new-customer", 0).code == "WELCOME"
    assert store.count_queries == [("new-customer", "completed")]

    store.order_counts[("repeat-customer", "completed")] = 2
    assert calculator.validate_promo_code("WELCOME", "repeat-customer", 0) is None


def test_first_order_promo_ignores_delivered_orders(store: FakePricingStore, calculator: PricingCalculator):
    store.order_counts[("repeat-customer", "delivered")] = 5

    assert calculator.validate_promo_code("WELCOME", "repeat-customer", 0) is not None


def test_pricing_before_initialize_raises(store: FakePricingStore):
    calc = PricingCalculator(store, clock=lambda: NOW)

    assert not calc.is_initialized
    with pytest.raises(PricingNotInitializedError):
        calc.price(1.0)
    with pytest.raises(PricingNotInitializedError):
        calc.find_zone(1.0)


def test_failed_initialize_publishes_nothing(store: FakePricingStore):
    store.fail_zones = True
    calc = PricingCalculator(store, clock=lambda: NOW)

    with pytest.raises(PricingConfigurationError):
        calc.initialize()
    assert not calc.is_initialized


def test_failed_refresh_keeps_previous_snapshot(store: FakePricingStore, calculator: PricingCalculator):
    before = calculator.snapshot
    store.fail_zones = True

    with pytest.raises(PricingConfigurationError):
        calculator.refresh()
    assert calculator.snapshot is before
    assert calculator.price(5.0).final_price == 1000


def test_refresh_replaces_snapshot_wholesale(store: FakePricingStore, calculator: PricingCalculator):
    store.zones = [DeliveryZone(id="all", name="Citywide", min_distance=0, max_distance=50, base_price=750)]
    store.adjustments = []

    calculator.refresh()

    assert calculator.price(30.0).zone_name == "Citywide"
    assert calculator.find_adjustment("Express Delivery") is None


def test_increment_promo_usage_calls_store(store: FakePricingStore, calculator: PricingCalculator):
    calculator.increment_promo_usage("SAVE50")

    assert store.incremented == ["SAVE50"]


def test_increment_promo_usage_failure_is_logged_not_raised(
    store: FakePricingStore, calculator: PricingCalculator, caplog: pytest.LogCaptureFixture
):
    store.fail_increment = True

    with caplog.at_level(logging.ERROR):
        calculator.increment_promo_usage("SAVE50")

    assert "Failed to increment promo usage for SAVE50" in caplog.text


def test_promotion_codes_stored_with_whitespace_are_found():
    store = FakePricingStore(zones=make_zones(), promotions=[make_promotion(" SPACED \t")])
    calc = PricingCalculator(store, clock=lambda: NOW)
    calc.initialize()

    assert calc.find_promotion("spaced").code == " SPACED \t"
    assert calc.find_promotion("  Spaced ").code == " SPACED \t"
    assert calc.validate_promo_code("SPACED", "cust-1", 0) is not None
