"""Pricing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class CoordinatesModel(BaseModel):
    latitude: float
    longitude: float


class DistanceRequest(BaseModel):
    pickup_address: str
    delivery_address: str
    session_id: Optional[str] = Field(
        default=None,
        description="Caller input stream; a newer request in the same session supersedes older ones.",
    )


class DistanceResponse(BaseModel):
    distance: float = Field(..., description="Great-circle distance in km, one decimal.")
    pickup_coords: CoordinatesModel
    delivery_coords: CoordinatesModel
    session_id: Optional[str] = None
    request_seq: Optional[int] = None


class QuoteRequest(BaseModel):
    distance_km: Optional[float] = Field(default=None, ge=0)
    pickup_address: Optional[str] = None
    delivery_address: Optional[str] = None
    adjustments: List[str] = Field(default_factory=list, description="Selected order-type tags.")
    order_value: float = Field(default=0.0, ge=0)
    promo_code: Optional[str] = None
    customer_id: Optional[str] = None
    session_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_distance_or_addresses(self) -> "QuoteRequest":
        if self.distance_km is None and not (self.pickup_address and self.delivery_address):
            raise ValueError("Provide distance_km or both pickup_address and delivery_address.")
        if self.promo_code and not self.customer_id:
            raise ValueError("customer_id is required when promo_code is supplied.")
        return self


class AdjustmentLineModel(BaseModel):
    name: str
    amount: float


class BreakdownModel(BaseModel):
    distance: float
    zone_name: str
    base_price: float
    adjustments: List[AdjustmentLineModel]
    subtotal: float
    discount: float
    discount_name: Optional[str] = None
    final_price: float
    promo_applied: Optional[str] = None


class QuoteResponse(BaseModel):
    breakdown: BreakdownModel
    formatted_total: str
    promo_valid: Optional[bool] = Field(
        default=None, description="Whether the supplied promo code was accepted; null when none was given."
    )
    pickup_coords: Optional[CoordinatesModel] = None
    delivery_coords: Optional[CoordinatesModel] = None
    session_id: Optional[str] = None
    request_seq: Optional[int] = None


class BulkItemModel(BaseModel):
    distance_km: float = Field(..., ge=0)
    adjustments: List[str] = Field(default_factory=list)


class BulkQuoteRequest(BaseModel):
    items: List[BulkItemModel]


class BulkQuoteResponse(BaseModel):
    items: List[BreakdownModel]
    total_fee: float
    discount_percentage: float
    discount_amount: float
    final_fee: float
    formatted_total: str


class RefreshResponse(BaseModel):
    zones: int
    adjustments: int
    promotions: int
    loaded_at: str
