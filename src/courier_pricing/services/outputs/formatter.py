"""Utilities to present pricing results as text, JSON-ready dicts and CSV."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...config import settings
from ...models.domain import BulkPricingSummary, PricingBreakdown


def format_currency(amount: float, symbol: str | None = None) -> str:
    """Whole-unit amount with thousands separators, e.g. ``₦1,500``."""
    symbol = settings.currency_symbol if symbol is None else symbol
    return f"{symbol}{amount:,.0f}"


def breakdown_to_dict(breakdown: PricingBreakdown) -> dict:
    payload = asdict(breakdown)
    payload["adjustments"] = [dict(line) for line in payload["adjustments"]]
    for key in ("discount_name", "promo_applied"):
        if payload[key] is None:
            del payload[key]
    return payload


def bulk_summary_to_csv(summary: BulkPricingSummary) -> str:
    buffer = io.StringIO()
    fieldnames = ["line", "distance", "zone_name", "base_price", "adjustments", "subtotal", "final_price"]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for index, breakdown in enumerate(summary.items, start=1):
        writer.writerow(
            {
                "line": index,
                "distance": breakdown.distance,
                "zone_name": breakdown.zone_name,
                "base_price": breakdown.base_price,
                "adjustments": "; ".join(f"{line.name}={line.amount}" for line in breakdown.adjustments),
                "subtotal": breakdown.subtotal,
                "final_price": breakdown.final_price,
            }
        )
    return buffer.getvalue()
