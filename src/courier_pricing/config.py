"""Application configuration and settings management."""

from typing import Annotated, Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="CP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Courier Pricing API"
    api_prefix: str = "/api"
    log_level: str = Field(
        default="info",
        description="Level for the service loggers (configure_logging) and uvicorn (start_server.py).",
    )
    initialize_on_startup: bool = Field(
        default=True,
        description="Load zones, adjustments and promotions when the application starts.",
    )

    geocoding_base_url: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Address search endpoint (Nominatim compatible).",
    )
    geocoding_user_agent: str = Field(
        default="DeliveryApp/1.0",
        description="User-Agent header; Nominatim rejects anonymous clients.",
    )
    geocoding_timeout_seconds: float = Field(default=10.0, gt=0.0)
    min_address_length: int = Field(default=3, ge=0)

    first_order_status: str = Field(
        default="completed",
        description=(
            "Order status counted when checking first-order-only promotions. "
            "Orders are normally marked 'delivered'; pending product clarification."
        ),
    )
    currency_symbol: str = "₦"
    volume_discount_tiers: Annotated[dict[int, float], NoDecode] = Field(
        default_factory=lambda: {3: 5.0, 6: 10.0, 11: 15.0},
        description="Bulk order size threshold -> percentage discount.",
    )
    bulk_min_items: int = Field(default=2, ge=1)
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("volume_discount_tiers", mode="before")
    @classmethod
    def _parse_tiers_from_env(cls, value: Any) -> dict[int, float]:
        """Parse tiers from a JSON object ({"3": 5}) or a comma list ("3:5,6:10")."""
        if isinstance(value, dict):
            return {int(count): float(percent) for count, percent in value.items()}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, dict):
                    return {int(count): float(percent) for count, percent in parsed.items()}
            except (json.JSONDecodeError, TypeError):
                pass
            tiers: dict[int, float] = {}
            for item in value.split(","):
                if not item.strip():
                    continue
                count, _, percent = item.partition(":")
                tiers[int(count.strip())] = float(percent.strip())
            return tiers
        if value is None:
            return {}
        return value


settings = Settings()
