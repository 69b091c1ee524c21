"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from booking_widget.config import (
    AppConfig,
    QueryConfig,
    RateLimitConfig,
    StoreConfig,
    WidgetConfig,
    _safe_float,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_unknown_timezone(self):
        config = AppConfig(widget=replace(WidgetConfig(), default_timezone="Nowhere/City"))
        with pytest.raises(ValueError, match="DEFAULT_TIMEZONE"):
            _validate_config(config)

    def test_invalid_color(self):
        config = AppConfig(widget=replace(WidgetConfig(), default_color="green"))
        with pytest.raises(ValueError, match="WIDGET_DEFAULT_COLOR"):
            _validate_config(config)

    def test_base_url_must_be_http(self):
        config = AppConfig(widget=replace(WidgetConfig(), base_url="ftp://widgets.example.com"))
        with pytest.raises(ValueError, match="WIDGET_BASE_URL"):
            _validate_config(config)

    def test_empty_container_id(self):
        config = AppConfig(widget=replace(WidgetConfig(), container_id="  "))
        with pytest.raises(ValueError, match="WIDGET_CONTAINER_ID"):
            _validate_config(config)

    def test_timeout_must_be_positive(self):
        config = AppConfig(store=StoreConfig(fetch_timeout_sec=0))
        with pytest.raises(ValueError, match="STORE_FETCH_TIMEOUT"):
            _validate_config(config)

    def test_next_available_count_at_least_one(self):
        config = AppConfig(query=QueryConfig(next_available_count=0))
        with pytest.raises(ValueError, match="NEXT_AVAILABLE_COUNT"):
            _validate_config(config)

    def test_rate_limit_values(self):
        with pytest.raises(ValueError, match="BOOKING_RATE_LIMIT"):
            _validate_config(AppConfig(rate_limit=RateLimitConfig(max_bookings=-1)))
        with pytest.raises(ValueError, match="BOOKING_RATE_WINDOW"):
            _validate_config(AppConfig(rate_limit=RateLimitConfig(window_sec=0)))
        _validate_config(AppConfig(rate_limit=RateLimitConfig(max_bookings=0)))

    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("BOOKING_TEST_INT", "five")
        with pytest.raises(ValueError, match="BOOKING_TEST_INT"):
            _safe_int("BOOKING_TEST_INT", "5")

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)
