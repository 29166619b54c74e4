"""Read access to pricing configuration stored in Supabase."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from ..db.supabase import get_supabase_client
from ..models.domain import DeliveryZone, OrderTypeAdjustment, Promotion

logger = logging.getLogger(__name__)


class PricingConfigStore(Protocol):
    """Source of zones, adjustments and promotions plus the promo usage counter."""

    def fetch_active_zones(self) -> list[DeliveryZone]: ...

    def fetch_active_adjustments(self) -> list[OrderTypeAdjustment]: ...

    def fetch_active_promotions(self) -> list[Promotion]: ...

    def count_customer_orders(self, customer_id: str, status: str) -> int: ...

    def increment_promo_usage(self, promo_code: str) -> int | None: ...


def _to_float(value: Any, default: float = 0.0) -> float:
    # Postgres numeric columns come back as strings
    if value is None or value == "":
        return default
    return float(value)


def _to_optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _to_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamptz value into an aware datetime (naive values are taken as UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def zone_from_row(row: dict[str, Any]) -> DeliveryZone:
    return DeliveryZone(
        id=str(row["id"]),
        name=row["zone_name"],
        min_distance=_to_float(row.get("min_distance")),
        max_distance=_to_float(row["max_distance"]),
        base_price=_to_float(row["base_price"]),
        active=bool(row.get("is_active", True)),
    )


def adjustment_from_row(row: dict[str, Any]) -> OrderTypeAdjustment:
    return OrderTypeAdjustment(
        id=str(row["id"]),
        name=row["adjustment_name"],
        kind=row.get("adjustment_type") or "flat",
        value=_to_float(row.get("adjustment_value")),
        active=bool(row.get("is_active", True)),
    )


def promotion_from_row(row: dict[str, Any]) -> Promotion:
    return Promotion(
        id=str(row["id"]),
        code=row["promo_code"],
        name=row["promo_name"],
        discount_kind=row.get("discount_type") or "flat",
        discount_value=_to_float(row.get("discount_value")),
        min_order_value=_to_float(row.get("min_order_value")),
        max_discount=_to_optional_float(row.get("max_discount")),
        active=bool(row.get("is_active", True)),
        first_order_only=bool(row.get("is_first_order_only", False)),
        start_date=parse_timestamp(row.get("start_date")),
        end_date=parse_timestamp(row.get("end_date")),
        usage_limit=_to_optional_int(row.get("usage_limit")),
        usage_count=_to_optional_int(row.get("usage_count")) or 0,
    )


class SupabasePricingStore:
    """PricingConfigStore backed by the delivery_zones/order_type_adjustments/promotions tables."""

    def __init__(self, client=None) -> None:
        self._client = client

    @property
    def client(self):
        client = self._client or get_supabase_client()
        if client is None:
            raise ConnectionError(
                "Supabase not configured. Set CP_SUPABASE_URL and CP_SUPABASE_KEY environment variables."
            )
        return client

    def fetch_active_zones(self) -> list[DeliveryZone]:
        response = (
            self.client.table("delivery_zones")
            .select("*")
            .eq("is_active", True)
            .order("min_distance")
            .execute()
        )
        return [zone_from_row(row) for row in (response.data or [])]

    def fetch_active_adjustments(self) -> list[OrderTypeAdjustment]:
        response = self.client.table("order_type_adjustments").select("*").eq("is_active", True).execute()
        return [adjustment_from_row(row) for row in (response.data or [])]

    def fetch_active_promotions(self) -> list[Promotion]:
        # Date window and usage limit are filtered by the caller at load time
        response = self.client.table("promotions").select("*").eq("is_active", True).execute()
        return [promotion_from_row(row) for row in (response.data or [])]

    def count_customer_orders(self, customer_id: str, status: str) -> int:
        response = (
            self.client.table("orders")
            .select("id", count="exact", head=True)
            .eq("customer_id", customer_id)
            .eq("status", status)
            .execute()
        )
        return response.count or 0

    def increment_promo_usage(self, promo_code: str) -> int | None:
        response = self.client.rpc("increment_promo_usage", {"p_promo_code": promo_code}).execute()
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        return _to_optional_int(data)
