"""Distance, quote and promotion endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...models.domain import BulkLineItem, DistanceEstimate
from ...schemas.pricing import (
    BreakdownModel,
    BulkQuoteRequest,
    BulkQuoteResponse,
    CoordinatesModel,
    DistanceRequest,
    DistanceResponse,
    QuoteRequest,
    QuoteResponse,
    RefreshResponse,
)
from ...services.geocoding import DistanceEstimator
from ...services.outputs.formatter import breakdown_to_dict, format_currency
from ...services.pricing import (
    BulkOrderError,
    NoZoneForDistanceError,
    PricingCalculator,
    PricingConfigurationError,
    PricingNotInitializedError,
    price_bulk_order,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing"])

ADDRESS_NOT_FOUND = "Unable to find addresses. Please check and try again."
SUPERSEDED = "superseded"


def get_calculator(request: Request) -> PricingCalculator:
    return request.app.state.calculator


def get_estimator(request: Request) -> DistanceEstimator:
    return request.app.state.estimator


def _unavailable(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _zone_gap(exc: NoZoneForDistanceError) -> HTTPException:
    logger.error(f"Pricing configuration gap: {exc}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _estimate(
    estimator: DistanceEstimator, pickup_address: str, delivery_address: str, session_id: str | None
) -> tuple[DistanceEstimate, int | None]:
    """Estimate the distance, discarding the result if the session has a newer request."""
    request_seq = None
    if session_id:
        request_seq, estimate, superseded = estimator.estimate_latest(session_id, pickup_address, delivery_address)
        if superseded:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SUPERSEDED)
    else:
        estimate = estimator.estimate_distance(pickup_address, delivery_address)
    if estimate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ADDRESS_NOT_FOUND)
    return estimate, request_seq


@router.post("/distance/estimate", response_model=DistanceResponse, status_code=status.HTTP_200_OK)
def estimate_distance(
    payload: DistanceRequest,
    estimator: DistanceEstimator = Depends(get_estimator),
) -> DistanceResponse:
    estimate, request_seq = _estimate(
        estimator, payload.pickup_address, payload.delivery_address, payload.session_id
    )
    return DistanceResponse(
        distance=estimate.distance,
        pickup_coords=CoordinatesModel(**asdict(estimate.pickup_coords)),
        delivery_coords=CoordinatesModel(**asdict(estimate.delivery_coords)),
        session_id=payload.session_id,
        request_seq=request_seq,
    )


@router.post("/pricing/quote", response_model=QuoteResponse, status_code=status.HTTP_200_OK)
def quote(
    payload: QuoteRequest,
    calculator: PricingCalculator = Depends(get_calculator),
    estimator: DistanceEstimator = Depends(get_estimator),
) -> QuoteResponse:
    pickup_coords = delivery_coords = None
    request_seq = None
    distance = payload.distance_km
    if distance is None:
        estimate, request_seq = _estimate(
            estimator, payload.pickup_address or "", payload.delivery_address or "", payload.session_id
        )
        distance = estimate.distance
        pickup_coords = CoordinatesModel(**asdict(estimate.pickup_coords))
        delivery_coords = CoordinatesModel(**asdict(estimate.delivery_coords))

    try:
        promotion = None
        promo_valid = None
        if payload.promo_code:
            promotion = calculator.validate_promo_code(
                payload.promo_code, payload.customer_id or "", payload.order_value
            )
            promo_valid = promotion is not None
        breakdown = calculator.price(distance, payload.adjustments, payload.order_value, promotion)
    except PricingNotInitializedError as exc:
        raise _unavailable(exc) from exc
    except NoZoneForDistanceError as exc:
        raise _zone_gap(exc) from exc

    return QuoteResponse(
        breakdown=BreakdownModel(**breakdown_to_dict(breakdown)),
        formatted_total=format_currency(breakdown.final_price),
        promo_valid=promo_valid,
        pickup_coords=pickup_coords,
        delivery_coords=delivery_coords,
        session_id=payload.session_id,
        request_seq=request_seq,
    )


@router.post("/pricing/bulk-quote", response_model=BulkQuoteResponse, status_code=status.HTTP_200_OK)
def bulk_quote(
    payload: BulkQuoteRequest,
    calculator: PricingCalculator = Depends(get_calculator),
) -> BulkQuoteResponse:
    items = [BulkLineItem(distance=item.distance_km, adjustments=tuple(item.adjustments)) for item in payload.items]
    try:
        summary = price_bulk_order(calculator, items)
    except PricingNotInitializedError as exc:
        raise _unavailable(exc) from exc
    except NoZoneForDistanceError as exc:
        raise _zone_gap(exc) from exc
    except BulkOrderError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return BulkQuoteResponse(
        items=[BreakdownModel(**breakdown_to_dict(breakdown)) for breakdown in summary.items],
        total_fee=summary.total_fee,
        discount_percentage=summary.discount_percentage,
        discount_amount=summary.discount_amount,
        final_fee=summary.final_fee,
        formatted_total=format_currency(summary.final_fee),
    )


@router.post("/pricing/refresh", response_model=RefreshResponse, status_code=status.HTTP_200_OK)
def refresh(calculator: PricingCalculator = Depends(get_calculator)) -> RefreshResponse:
    try:
        snapshot = calculator.refresh()
    except PricingConfigurationError as exc:
        raise _unavailable(exc) from exc
    return RefreshResponse(
        zones=len(snapshot.zones),
        adjustments=len(snapshot.adjustments),
        promotions=len(snapshot.promotions),
        loaded_at=snapshot.loaded_at.isoformat(),
    )


@router.post("/promotions/{promo_code}/usage", status_code=status.HTTP_202_ACCEPTED)
def record_promo_usage(promo_code: str, calculator: PricingCalculator = Depends(get_calculator)) -> dict:
    """Record that an order used ``promo_code``; counter failures never fail the request."""
    calculator.increment_promo_usage(promo_code)
    return {"promo_code": promo_code, "status": "accepted"}
