"""Population-level customer analyses."""

from .cohorts import (
    CohortPoint,
    analyze_cohorts,
    calculate_retention_rate,
    month_start,
    subtract_months,
)

__all__ = [
    "CohortPoint",
    "analyze_cohorts",
    "calculate_retention_rate",
    "month_start",
    "subtract_months",
]
