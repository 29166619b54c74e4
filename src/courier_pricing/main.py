"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, pricing
from .config import settings
from .persistence.pricing_store import SupabasePricingStore
from .services.geocoding import DistanceEstimator
from .services.pricing import PricingCalculator, PricingConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Send service logs to the console at ``level`` (defaults to settings.log_level)."""
    level = (level or settings.log_level).upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("courier_pricing").setLevel(level)


def create_app(
    calculator: PricingCalculator | None = None,
    estimator: DistanceEstimator | None = None,
    initialize_on_startup: bool | None = None,
) -> FastAPI:
    calculator = calculator or PricingCalculator(SupabasePricingStore())
    estimator = estimator or DistanceEstimator()
    if initialize_on_startup is None:
        initialize_on_startup = settings.initialize_on_startup

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if initialize_on_startup and not calculator.is_initialized:
            try:
                calculator.initialize()
            except PricingConfigurationError as exc:
                # Quotes answer 503 until /pricing/refresh succeeds
                logger.error(f"Starting without pricing configuration: {exc}")
        yield

    app = FastAPI(title=settings.app_name, root_path="", lifespan=lifespan)
    app.state.calculator = calculator
    app.state.estimator = estimator

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(pricing.router, prefix=settings.api_prefix)
    return app


configure_logging()
app = create_app()
