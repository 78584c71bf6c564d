"""Tests for engine configuration."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from customer_analytics.config import EngineConfig
from customer_analytics.errors import ConfigurationError


class TestEngineConfig:
    """Test EngineConfig defaults and validation."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.clv_high_threshold == 10_000_000
        assert config.clv_medium_threshold == 3_000_000
        assert config.clv_horizon_days == 1095
        assert config.clv_growth_factor == Decimal("1.15")
        assert config.min_lifespan_days == 30
        assert config.default_months_window == 12
        assert config.tagging_max_workers == 1

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.clv_high_threshold = 1

    def test_tier_order_enforced(self):
        with pytest.raises(ValidationError, match="must exceed clv_medium_threshold"):
            EngineConfig(clv_high_threshold=100, clv_medium_threshold=100)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("default_months_window", 0),
            ("tagging_max_workers", 0),
            ("min_lifespan_days", 0),
            ("clv_growth_factor", Decimal("0")),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            EngineConfig(**{field: value})


class TestFromEnv:
    """Test environment overrides."""

    def test_empty_environment_uses_defaults(self):
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_overrides(self):
        config = EngineConfig.from_env(
            {
                "CUSTOMER_ANALYTICS_CLV_HIGH_THRESHOLD": "25000000",
                "CUSTOMER_ANALYTICS_CLV_GROWTH_FACTOR": "1.2",
                "CUSTOMER_ANALYTICS_TAGGING_MAX_WORKERS": "8",
                "UNRELATED": "ignored",
            }
        )
        assert config.clv_high_threshold == 25_000_000
        assert config.clv_growth_factor == Decimal("1.2")
        assert config.tagging_max_workers == 8

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("CUSTOMER_ANALYTICS_DEFAULT_MONTHS_WINDOW", "6")
        assert EngineConfig.from_env().default_months_window == 6

    def test_invalid_value_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Invalid engine configuration"):
            EngineConfig.from_env({"CUSTOMER_ANALYTICS_DEFAULT_MONTHS_WINDOW": "soon"})

    def test_inverted_tiers_raise_configuration_error(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env({"CUSTOMER_ANALYTICS_CLV_MEDIUM_THRESHOLD": "20000000"})
