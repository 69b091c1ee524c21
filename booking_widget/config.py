"""
Centralized configuration with environment variable overrides.

Deployment-level settings for the booking widget live here. Per-contractor
booking policy is stored data and is modelled in ``schemas.policy_schema``.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from booking_widget.logging_context import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class WidgetConfig:
    """Embeddable widget settings."""

    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "America/New_York")
    base_url: str = os.getenv("WIDGET_BASE_URL", "http://localhost:5173")
    container_id: str = os.getenv("WIDGET_CONTAINER_ID", "krib-booking")
    default_color: str = os.getenv("WIDGET_DEFAULT_COLOR", "#10b981")


@dataclass(frozen=True)
class StoreConfig:
    """Timeouts for the document store reads."""

    fetch_timeout_sec: float = _safe_float("STORE_FETCH_TIMEOUT", "5.0")


@dataclass(frozen=True)
class QueryConfig:
    """Defaults for the availability query surface."""

    next_available_count: int = _safe_int("NEXT_AVAILABLE_COUNT", "5")


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client limit on widget booking requests. 0 disables the limit."""

    max_bookings: int = _safe_int("BOOKING_RATE_LIMIT", "5")
    window_sec: float = _safe_float("BOOKING_RATE_WINDOW", "3600")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    widget: WidgetConfig = field(default_factory=WidgetConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "booking-widget")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        ZoneInfo(config.widget.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"DEFAULT_TIMEZONE is not a known timezone: {config.widget.default_timezone!r}"
        ) from None
    if not HEX_COLOR_RE.match(config.widget.default_color):
        raise ValueError(
            f"WIDGET_DEFAULT_COLOR must be a #rrggbb color, got {config.widget.default_color!r}"
        )
    if not config.widget.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"WIDGET_BASE_URL must be an http(s) URL, got {config.widget.base_url!r}"
        )
    if not config.widget.container_id.strip():
        raise ValueError("WIDGET_CONTAINER_ID must not be empty")
    if config.store.fetch_timeout_sec <= 0:
        raise ValueError(
            f"STORE_FETCH_TIMEOUT must be > 0, got {config.store.fetch_timeout_sec}"
        )
    if config.query.next_available_count < 1:
        raise ValueError(
            f"NEXT_AVAILABLE_COUNT must be >= 1, got {config.query.next_available_count}"
        )
    if config.rate_limit.max_bookings < 0:
        raise ValueError(
            f"BOOKING_RATE_LIMIT must be >= 0, got {config.rate_limit.max_bookings}"
        )
    if config.rate_limit.window_sec <= 0:
        raise ValueError(
            f"BOOKING_RATE_WINDOW must be > 0, got {config.rate_limit.window_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    configure_logging(config.log_level)
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
