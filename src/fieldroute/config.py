"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        # tuple fields are parsed by the validators below, which also accept JSON arrays
        enable_decoding=False,
    )

    app_name: str = "Field Route Planning & Monitoring API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    timezone: str = Field(
        default="UTC",
        description="IANA zone used to decide the local calendar day for visit checks.",
    )

    # Route construction and time model
    average_speed_kmh: float = Field(default=50.0, gt=0.0)
    default_visit_minutes: int = Field(default=30, ge=0)
    ideal_km_per_stop: float = Field(default=15.0, gt=0.0)
    ideal_minutes_per_stop: float = Field(default=30.0, gt=0.0)
    default_origin: tuple[float, float] = Field(
        default=(0.0, 0.0),
        description="Starting coordinate (lat, lng) when the agent has no fixed depot.",
    )
    two_opt_max_iterations: int = Field(default=100, ge=0)
    workday_start_hour: int = Field(default=8, ge=0, le=23, description="Planned arrival at the first stop.")
    max_stops_per_route: int = Field(default=10, ge=1)
    priority_top_k: int = Field(default=10, ge=1)
    priority_weights: tuple[float, ...] = Field(
        default=(0.3, 0.4, 0.3),
        description="Weights for visit frequency, average order value and recency.",
    )
    default_order_value: float = Field(default=100.0, ge=0.0)

    # Live monitoring thresholds
    proximity_radius_meters: float = Field(default=100.0, ge=0.0)
    deviation_threshold_meters: float = Field(default=500.0, ge=0.0)
    deviation_high_meters: float = Field(default=1000.0, ge=0.0)
    delay_threshold_minutes: int = Field(default=30, ge=0)
    delay_high_minutes: int = Field(default=60, ge=0)
    extended_visit_minutes: int = Field(default=90, ge=1)
    extended_visit_high_minutes: int = Field(default=180, ge=1)
    alert_cooldown_minutes: int = Field(
        default=15,
        ge=0,
        description="Suppress a repeated unread alert for the same condition inside this window. 0 disables.",
    )
    gps_freshness_seconds: int = Field(default=300, ge=1)
    poll_interval_seconds: int = Field(default=60, ge=1)
    monitor_enabled: bool = Field(default=False, description="Run the route monitor inside the API process.")

    # Owner notification webhook
    notification_webhook_url: Optional[str] = Field(
        default=None,
        description="Endpoint that receives manager notifications for new alerts.",
    )
    notification_max_retries: int = Field(default=2, ge=0)
    notification_backoff_seconds: float = Field(default=0.5, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
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

    @property
    def minutes_per_km(self) -> float:
        return 60.0 / self.average_speed_kmh

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
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

    @field_validator("priority_weights", "default_origin", mode="before")
    @classmethod
    def _parse_float_tuple_from_env(cls, value: Any) -> tuple[float, ...]:
        """Parse float tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(float(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(float(item) for item in parsed)
            except (json.JSONDecodeError, TypeError, ValueError):
                pass
            return tuple(float(item.strip()) for item in value.split(",") if item.strip())
        return value

    @field_validator("priority_weights")
    @classmethod
    def _check_weight_count(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != 3:
            raise ValueError("priority_weights needs exactly three values (frequency, order value, recency).")
        return value


settings = Settings()
