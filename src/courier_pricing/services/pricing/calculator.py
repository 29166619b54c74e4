"""Zone-based delivery pricing with adjustments and promotions."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, Sequence

from ...config import settings
from ...models.domain import (
    AdjustmentLine,
    DeliveryZone,
    OrderTypeAdjustment,
    PricingBreakdown,
    Promotion,
)
from ...persistence.pricing_store import PricingConfigStore
from .promotions import compute_discount, usable_promotions

logger = logging.getLogger(__name__)


class NoZoneForDistanceError(ValueError):
    """No active delivery zone covers the requested distance."""

    def __init__(self, distance: float) -> None:
        super().__init__(f"No delivery zone found for distance: {distance}km")
        self.distance = distance


class PricingNotInitializedError(RuntimeError):
    """Pricing was requested before a complete configuration snapshot was loaded."""


class PricingConfigurationError(RuntimeError):
    """Loading the pricing configuration from the store failed."""


def promo_key(code: str) -> str:
    """Lookup key for a promo code: case-insensitive, surrounding whitespace ignored."""
    return code.strip().lower()


@dataclass(slots=True, frozen=True)
class PricingSnapshot:
    """Immutable view of zones, adjustments and usable promotions."""

    zones: tuple[DeliveryZone, ...]
    adjustments: Mapping[str, OrderTypeAdjustment]
    promotions: Mapping[str, Promotion]
    loaded_at: datetime

    @classmethod
    def build(
        cls,
        zones: Sequence[DeliveryZone],
        adjustments: Iterable[OrderTypeAdjustment],
        promotions: Iterable[Promotion],
        loaded_at: datetime,
    ) -> "PricingSnapshot":
        adjustment_map: dict[str, OrderTypeAdjustment] = {}
        for adjustment in adjustments:
            # first match wins, as with a linear scan
            adjustment_map.setdefault(adjustment.name.lower(), adjustment)
        promotion_map: dict[str, Promotion] = {}
        for promotion in promotions:
            promotion_map.setdefault(promo_key(promotion.code), promotion)
        return cls(
            zones=tuple(zones),
            adjustments=adjustment_map,
            promotions=promotion_map,
            loaded_at=loaded_at,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PricingCalculator:
    """Prices deliveries from an in-memory snapshot of the pricing configuration.

    The snapshot is replaced wholesale by ``initialize``/``refresh`` and read
    once per call, so concurrent pricing calls see either the old or the new
    configuration, never a mix.
    """

    def __init__(
        self,
        store: PricingConfigStore,
        clock: Callable[[], datetime] = _utcnow,
        first_order_status: str | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.first_order_status = first_order_status or settings.first_order_status
        self._snapshot: PricingSnapshot | None = None
        self._refresh_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> PricingSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise PricingNotInitializedError("Pricing configuration has not been loaded; call initialize() first.")
        return snapshot

    def initialize(self) -> PricingSnapshot:
        """Load active zones, adjustments and usable promotions.

        The three reads run concurrently; the new snapshot is only published
        once all of them succeed. On failure the previous snapshot is kept.
        """
        with self._refresh_lock:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="pricing-load") as executor:
                zones_future = executor.submit(self.store.fetch_active_zones)
                adjustments_future = executor.submit(self.store.fetch_active_adjustments)
                promotions_future = executor.submit(self.store.fetch_active_promotions)
                try:
                    zones = zones_future.result()
                    adjustments = adjustments_future.result()
                    promotions = promotions_future.result()
                except Exception as exc:
                    logger.error(f"Failed to load pricing configuration: {exc}")
                    raise PricingConfigurationError(f"Failed to load pricing configuration: {exc}") from exc

            now = self.clock()
            snapshot = PricingSnapshot.build(
                zones=[zone for zone in zones if zone.active],
                adjustments=[adjustment for adjustment in adjustments if adjustment.active],
                promotions=usable_promotions(promotions, now),
                loaded_at=now,
            )
            self._snapshot = snapshot

        logger.info(
            f"Loaded pricing configuration: {len(snapshot.zones)} zones, "
            f"{len(snapshot.adjustments)} adjustments, {len(snapshot.promotions)} promotions"
        )
        return snapshot

    def refresh(self) -> PricingSnapshot:
        return self.initialize()

    def find_zone(self, distance: float) -> DeliveryZone | None:
        for zone in self.snapshot.zones:
            if zone.covers(distance):
                return zone
        return None

    def find_adjustment(self, name: str) -> OrderTypeAdjustment | None:
        return self.snapshot.adjustments.get(name.lower())

    def find_promotion(self, code: str) -> Promotion | None:
        return self.snapshot.promotions.get(promo_key(code))

    def validate_promo_code(self, code: str, customer_id: str, order_value: float) -> Promotion | None:
        """Return the promotion for ``code`` if this order is eligible, else None."""
        promotion = self.find_promotion(code)
        if promotion is None:
            return None

        if order_value < promotion.min_order_value:
            return None

        if promotion.first_order_only:
            # NOTE: counts orders with first_order_status ("completed" by default), a
            # status the order workflow never sets; kept until product confirms "delivered".
            try:
                previous_orders = self.store.count_customer_orders(customer_id, self.first_order_status)
            except Exception as exc:
                logger.warning(f"Could not count previous orders for customer {customer_id}: {exc}")
                previous_orders = 0
            if previous_orders > 0:
                return None

        return promotion

    def price(
        self,
        distance: float,
        adjustment_names: Sequence[str] = (),
        order_value: float = 0.0,
        promotion: Promotion | None = None,
    ) -> PricingBreakdown:
        """Compose the priced breakdown for a delivery.

        Raises NoZoneForDistanceError when no zone band covers ``distance``.
        Unknown adjustment names are ignored.
        """
        snapshot = self.snapshot
        zone = next((zone for zone in snapshot.zones if zone.covers(distance)), None)
        if zone is None:
            raise NoZoneForDistanceError(distance)

        base_price = zone.base_price
        lines: list[AdjustmentLine] = []
        for name in adjustment_names:
            adjustment = snapshot.adjustments.get(name.lower())
            if adjustment is None:
                continue
            if adjustment.kind == "flat":
                amount = adjustment.value
            elif adjustment.kind == "percentage":
                amount = base_price * adjustment.value / 100
            else:
                amount = 0.0
            lines.append(AdjustmentLine(name=adjustment.name, amount=amount))

        subtotal = base_price + sum(line.amount for line in lines)

        discount = 0.0
        discount_name = None
        promo_applied = None
        if promotion is not None:
            discount = compute_discount(promotion, subtotal)
            discount_name = promotion.name
            promo_applied = promotion.code

        return PricingBreakdown(
            distance=distance,
            zone_name=zone.name,
            base_price=base_price,
            adjustments=tuple(lines),
            subtotal=subtotal,
            discount=discount,
            final_price=max(0.0, subtotal - discount),
            discount_name=discount_name,
            promo_applied=promo_applied,
        )

    def increment_promo_usage(self, code: str) -> None:
        """Best-effort usage counter bump after an order is placed; failures are only logged."""
        try:
            new_count = self.store.increment_promo_usage(code)
        except Exception as exc:
            logger.error(f"Failed to increment promo usage for {code}: {exc}")
            return
        logger.info(f"Promo {code} usage count is now {new_count}")
