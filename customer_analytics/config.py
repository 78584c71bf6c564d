"""Engine configuration.

Thresholds are currency-specific (minor units of the store's currency)
and are therefore configuration rather than constants derived from data.
Every field can be overridden from the environment with a
``CUSTOMER_ANALYTICS_`` prefixed variable, e.g.
``CUSTOMER_ANALYTICS_CLV_HIGH_THRESHOLD=25000000``.
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from customer_analytics.errors import ConfigurationError

ENV_PREFIX = "CUSTOMER_ANALYTICS_"


class EngineConfig(BaseModel):
    """Tunable parameters of the analytics engine."""

    model_config = ConfigDict(frozen=True)

    clv_high_threshold: int = Field(
        default=10_000_000,
        gt=0,
        description="CLV above this value (minor units) is tiered 'high'",
    )
    clv_medium_threshold: int = Field(
        default=3_000_000,
        gt=0,
        description="CLV above this value (minor units) is tiered 'medium'",
    )
    clv_horizon_days: int = Field(
        default=365 * 3,
        gt=0,
        description="Forward horizon multiplier applied to the annual purchase rate",
    )
    clv_growth_factor: Decimal = Field(
        default=Decimal("1.15"),
        gt=0,
        description="Flat optimistic growth adjustment for predicted CLV",
    )
    min_lifespan_days: int = Field(
        default=30,
        gt=0,
        description="Floor on customer lifespan to avoid blow-up for new customers",
    )
    default_months_window: int = Field(
        default=12,
        ge=1,
        description="Trailing window (months) for cohort analysis when none is given",
    )
    tagging_max_workers: int = Field(
        default=1,
        ge=1,
        description="Thread pool size for segment tag writes (1 = sequential)",
    )

    @model_validator(mode="after")
    def _check_tier_order(self) -> "EngineConfig":
        if self.clv_high_threshold <= self.clv_medium_threshold:
            raise ValueError(
                f"clv_high_threshold ({self.clv_high_threshold}) must exceed "
                f"clv_medium_threshold ({self.clv_medium_threshold})"
            )
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a config from ``CUSTOMER_ANALYTICS_*`` environment variables.

        Unset variables keep their defaults. Invalid values raise
        :class:`~customer_analytics.errors.ConfigurationError`.
        """
        if environ is None:
            overrides = {
                name: os.getenv(ENV_PREFIX + name.upper())
                for name in cls.model_fields
            }
        else:
            overrides = {
                name: environ.get(ENV_PREFIX + name.upper())
                for name in cls.model_fields
            }
        values = {name: value for name, value in overrides.items() if value is not None}
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid engine configuration: {exc}") from exc
