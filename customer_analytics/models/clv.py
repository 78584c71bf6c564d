"""Heuristic Customer Lifetime Value (CLV) estimation.

The estimator projects the observed annual purchase rate over a fixed
forward horizon and adds a flat growth adjustment. It is a documented
rule of thumb, not a statistical forecast.

Key formula:
    lifespan_days      = max(days from signup to last activity, min_lifespan_days)
    purchase_frequency = total_orders / (lifespan_days / 365)
    CLV                = average_order_value × purchase_frequency × horizon_days
    predicted CLV      = CLV × growth_factor

With the default configuration ``horizon_days`` is ``365 * 3`` and
``growth_factor`` is ``1.15``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Sequence

from customer_analytics.config import EngineConfig
from customer_analytics.foundation.records import (
    CustomerRecord,
    OrderRecord,
    ensure_aware,
)

DAYS_PER_YEAR = Decimal("365")
CURRENCY_QUANT = Decimal("0.01")  # Round currency values to 2 decimal places


class ProfitabilityTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class CLVMetrics:
    """CLV estimate for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    average_order_value:
        Historical revenue / order count (minor units, 2 dp)
    purchase_frequency:
        Orders per year over the observed lifespan (2 dp)
    lifespan_days:
        Days from signup to last activity, floored at the configured minimum
    total_revenue:
        Sum of completed order amounts (minor units)
    clv:
        average_order_value × purchase_frequency × horizon_days (2 dp)
    predicted_clv:
        clv × growth_factor, unrounded
    profitability_tier:
        high/medium/low according to the configured thresholds
    """

    customer_id: str
    average_order_value: Decimal
    purchase_frequency: Decimal
    lifespan_days: int
    total_revenue: int
    clv: Decimal
    predicted_clv: Decimal
    profitability_tier: ProfitabilityTier

    def __post_init__(self) -> None:
        if self.lifespan_days <= 0:
            raise ValueError(
                f"lifespan_days must be positive: {self.lifespan_days} (customer_id={self.customer_id})"
            )
        if self.total_revenue < 0:
            raise ValueError(
                f"total_revenue cannot be negative: {self.total_revenue} (customer_id={self.customer_id})"
            )
        if self.clv < 0:
            raise ValueError(
                f"clv cannot be negative: {self.clv} (customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "average_order_value": float(self.average_order_value),
            "purchase_frequency": float(self.purchase_frequency),
            "lifespan_days": self.lifespan_days,
            "total_revenue": self.total_revenue,
            "clv": float(self.clv),
            "predicted_clv": float(self.predicted_clv),
            "profitability_tier": self.profitability_tier.value,
        }


def classify_profitability(clv: Decimal, config: EngineConfig) -> ProfitabilityTier:
    if clv > config.clv_high_threshold:
        return ProfitabilityTier.HIGH
    if clv > config.clv_medium_threshold:
        return ProfitabilityTier.MEDIUM
    return ProfitabilityTier.LOW


def calculate_customer_clv(
    customer_id: str,
    total_orders: int,
    total_revenue: int,
    signup_ts: datetime,
    last_activity_ts: datetime,
    config: EngineConfig | None = None,
) -> CLVMetrics:
    """Compute CLV metrics from one customer's order aggregates.

    Examples
    --------
    >>> from datetime import datetime
    >>> m = calculate_customer_clv(
    ...     "C1", 6, 1_800_000, datetime(2024, 1, 1), datetime(2024, 7, 19)
    ... )
    >>> m.lifespan_days, m.purchase_frequency
    (200, Decimal('10.95'))
    >>> m.profitability_tier.value
    'high'
    """
    if total_orders <= 0:
        raise ValueError(
            f"total_orders must be positive: {total_orders} (customer_id={customer_id})"
        )
    config = config or EngineConfig()

    elapsed = ensure_aware(last_activity_ts) - ensure_aware(signup_ts)
    lifespan_days = max(elapsed.days, config.min_lifespan_days)
    average_order_value = Decimal(total_revenue) / Decimal(total_orders)
    purchase_frequency = Decimal(total_orders) / (Decimal(lifespan_days) / DAYS_PER_YEAR)
    clv = (average_order_value * purchase_frequency * config.clv_horizon_days).quantize(
        CURRENCY_QUANT, rounding=ROUND_HALF_UP
    )

    return CLVMetrics(
        customer_id=customer_id,
        average_order_value=average_order_value.quantize(
            CURRENCY_QUANT, rounding=ROUND_HALF_UP
        ),
        purchase_frequency=purchase_frequency.quantize(
            CURRENCY_QUANT, rounding=ROUND_HALF_UP
        ),
        lifespan_days=lifespan_days,
        total_revenue=total_revenue,
        clv=clv,
        predicted_clv=clv * config.clv_growth_factor,
        profitability_tier=classify_profitability(clv, config),
    )


def estimate_clv(
    customers: Sequence[CustomerRecord],
    orders: Sequence[OrderRecord],
    config: EngineConfig | None = None,
) -> list[CLVMetrics]:
    """Estimate CLV for every customer with at least one completed order.

    Order aggregates (count, revenue, latest order) are computed from the
    completed ``orders`` only; pending, refunded and cancelled orders and
    orders of unknown customers are ignored. A customer's last activity is their recorded
    ``last_activity_ts``, falling back to their latest order.

    Returns
    -------
    list[CLVMetrics]
        Sorted by customer_id; empty if no customer has orders.
    """
    config = config or EngineConfig()
    by_id = {c.customer_id: c for c in customers}

    order_counts: dict[str, int] = defaultdict(int)
    revenue: dict[str, int] = defaultdict(int)
    latest_order: dict[str, datetime] = {}
    for order in orders:
        if not order.is_completed or order.customer_id not in by_id:
            continue
        order_counts[order.customer_id] += 1
        revenue[order.customer_id] += order.total_amount
        current = latest_order.get(order.customer_id)
        if current is None or order.created_ts > current:
            latest_order[order.customer_id] = order.created_ts

    metrics: list[CLVMetrics] = []
    for customer_id in sorted(order_counts):
        customer = by_id[customer_id]
        metrics.append(
            calculate_customer_clv(
                customer_id=customer_id,
                total_orders=order_counts[customer_id],
                total_revenue=revenue[customer_id],
                signup_ts=customer.signup_ts,
                last_activity_ts=customer.last_activity_ts or latest_order[customer_id],
                config=config,
            )
        )
    return metrics
