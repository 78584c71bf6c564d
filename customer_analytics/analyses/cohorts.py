"""Signup-cohort retention analysis.

Customers are grouped into cohorts by signup month and their orders are
bucketed into periods since signup, producing per-cohort retention, churn
and revenue curves across a trailing window.

Quick Start
-----------
>>> from datetime import datetime
>>> from customer_analytics.foundation.records import CustomerRecord, OrderRecord
>>> from customer_analytics.analyses.cohorts import analyze_cohorts
>>>
>>> customers = [CustomerRecord("C1", "t1", datetime(2024, 1, 15))]
>>> orders = [OrderRecord("O1", "C1", "t1", 5_000, datetime(2024, 1, 20))]
>>> points = analyze_cohorts(customers, orders, as_of=datetime(2024, 6, 1))
>>> [(p.cohort, p.period, p.retention_rate) for p in points]
[('2024-01', 0, 100.0)]
"""

from __future__ import annotations

import calendar
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

import pandas as pd

from customer_analytics.foundation.records import (
    CustomerRecord,
    OrderRecord,
    ensure_aware,
)

logger = logging.getLogger(__name__)

#: Length of one cohort period in days.
DAYS_PER_PERIOD = 30


@dataclass(frozen=True)
class CohortPoint:
    """Metrics for one cohort in one period after signup.

    Attributes
    ----------
    cohort:
        Signup month of the cohort (``YYYY-MM``).
    period:
        Periods since the cohort month (0 = signup period).
    customers:
        Cohort size for period 0, distinct ordering customers afterwards.
    revenue:
        Revenue from the cohort's orders in this period (minor units).
    retention_rate:
        Percentage of the cohort's period-0 size active in this period.
    churn_rate:
        ``100 - retention_rate``.
    """

    cohort: str
    period: int
    customers: int
    revenue: int
    retention_rate: float
    churn_rate: float

    def __post_init__(self) -> None:
        if self.period < 0:
            raise ValueError(f"period must be >= 0, got {self.period}")
        if self.customers < 0:
            raise ValueError(f"customers must be >= 0, got {self.customers}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "cohort": self.cohort,
            "period": self.period,
            "customers": self.customers,
            "revenue": self.revenue,
            "retention_rate": self.retention_rate,
            "churn_rate": self.churn_rate,
        }


def month_start(ts: datetime) -> datetime:
    """Truncate ``ts`` to the first instant of its month, keeping tzinfo."""
    return datetime(ts.year, ts.month, 1, tzinfo=ts.tzinfo)


def subtract_months(ts: datetime, months: int) -> datetime:
    """Move ``ts`` back by calendar months, clamping the day to the target month."""
    index = ts.year * 12 + (ts.month - 1) - months
    year, month_index = divmod(index, 12)
    month = month_index + 1
    day = min(ts.day, calendar.monthrange(year, month)[1])
    return ts.replace(year=year, month=month, day=day)


def window_start_for(as_of: datetime, months_window: int) -> datetime:
    if months_window < 1:
        raise ValueError(f"months_window must be >= 1, got {months_window}")
    return subtract_months(as_of, months_window)


def calculate_retention_rate(count: int, period_zero_count: int) -> float:
    """Retention percentage, treating an empty period 0 as size 1."""
    denominator = period_zero_count if period_zero_count > 0 else 1
    return round(100 * count / denominator, 2)


def analyze_cohorts(
    customers: Sequence[CustomerRecord],
    orders: Sequence[OrderRecord],
    as_of: datetime,
    months_window: int = 12,
) -> list[CohortPoint]:
    """Build retention curves for cohorts that signed up within the window.

    Parameters
    ----------
    customers:
        Customer snapshot for a single tenant. Only customers who signed up
        at or after ``as_of - months_window`` months form cohorts.
    orders:
        Order snapshot for the same tenant. Cancelled orders and orders of
        customers outside the cohorts are ignored.
    as_of:
        Reference "now" anchoring the trailing window.
    months_window:
        Trailing window size in calendar months (>= 1).

    Returns
    -------
    list[CohortPoint]
        Sorted by ``(cohort, period)``. Every cohort has a period-0 point
        whose customer count is the cohort's signup count, so its
        retention is always 100.

    Notes
    -----
    ``period = floor((order_month - cohort_month).days / 30)`` where both
    months are truncated to their first day. Orders that precede the
    cohort month (period < 0) are dropped and logged.
    """
    window_start = window_start_for(ensure_aware(as_of), months_window)

    cohort_of: dict[str, datetime] = {
        c.customer_id: month_start(c.signup_ts)
        for c in customers
        if c.signup_ts >= window_start
    }
    if not cohort_of:
        return []

    cohort_sizes = Counter(m.strftime("%Y-%m") for m in cohort_of.values())

    rows: list[dict[str, Any]] = []
    dropped = 0
    for order in orders:
        if order.is_cancelled:
            continue
        cohort_month = cohort_of.get(order.customer_id)
        if cohort_month is None:
            continue
        period = (month_start(order.created_ts) - cohort_month).days // DAYS_PER_PERIOD
        if period < 0:
            dropped += 1
            continue
        rows.append(
            {
                "cohort": cohort_month.strftime("%Y-%m"),
                "period": period,
                "customer_id": order.customer_id,
                "amount": order.total_amount,
            }
        )

    if dropped:
        logger.warning(
            f"Dropped {dropped} orders dated before their customer's signup month"
        )

    cells: dict[tuple[str, int], tuple[int, int]] = {}
    if rows:
        df = pd.DataFrame(rows, columns=["cohort", "period", "customer_id", "amount"])
        grouped = df.groupby(["cohort", "period"]).agg(
            customers=("customer_id", "nunique"),
            revenue=("amount", "sum"),
        )
        for (cohort, period), row in grouped.iterrows():
            cells[(cohort, int(period))] = (int(row["customers"]), int(row["revenue"]))

    for cohort, size in cohort_sizes.items():
        _, revenue = cells.get((cohort, 0), (0, 0))
        cells[(cohort, 0)] = (size, revenue)

    points: list[CohortPoint] = []
    for (cohort, period), (count, revenue) in sorted(cells.items()):
        retention = calculate_retention_rate(count, cohort_sizes[cohort])
        points.append(
            CohortPoint(
                cohort=cohort,
                period=period,
                customers=count,
                revenue=revenue,
                retention_rate=retention,
                churn_rate=round(100 - retention, 2),
            )
        )
    return points
