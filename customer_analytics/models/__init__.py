"""Customer value and risk models."""

from customer_analytics.models.churn import (
    ChurnAssessment,
    ChurnRisk,
    ChurnSummary,
    assess_churn,
    classify_churn,
    summarize_churn,
)
from customer_analytics.models.clv import (
    CLVMetrics,
    ProfitabilityTier,
    calculate_customer_clv,
    classify_profitability,
    estimate_clv,
)

__all__ = [
    "ChurnAssessment",
    "ChurnRisk",
    "ChurnSummary",
    "assess_churn",
    "classify_churn",
    "summarize_churn",
    "CLVMetrics",
    "ProfitabilityTier",
    "calculate_customer_clv",
    "classify_profitability",
    "estimate_clv",
]
