"""Pandas DataFrame adapters for analytics results."""

from typing import Sequence

import pandas as pd  # type: ignore

from customer_analytics.analyses.cohorts import CohortPoint
from customer_analytics.foundation.rfm import RFMScore, SegmentSummary
from customer_analytics.models.churn import ChurnAssessment
from customer_analytics.models.clv import CLVMetrics
from ._utils import results_to_dataframe

RFM_COLUMNS = [
    "customer_id",
    "recency_score",
    "frequency_score",
    "monetary_score",
    "rfm_code",
    "segment",
    "recency_days",
    "frequency",
    "monetary",
]
SEGMENT_COLUMNS = ["segment", "customer_count", "percentage", "average_spent"]
CLV_COLUMNS = [
    "customer_id",
    "average_order_value",
    "purchase_frequency",
    "lifespan_days",
    "total_revenue",
    "clv",
    "predicted_clv",
    "profitability_tier",
]
COHORT_COLUMNS = [
    "cohort",
    "period",
    "customers",
    "revenue",
    "retention_rate",
    "churn_rate",
]
CHURN_COLUMNS = [
    "customer_id",
    "days_since_last_order",
    "churn_risk",
    "churn_probability",
]


def rfm_scores_to_dataframe(scores: Sequence[RFMScore]) -> pd.DataFrame:
    """One row per scored customer, sorted by customer_id.

    Example:
        >>> df = rfm_scores_to_dataframe(engine.calculate_rfm("store-1"))
        >>> df.groupby("segment")["monetary"].sum()
    """
    return results_to_dataframe(scores, RFM_COLUMNS, sort_by=["customer_id"])


def segment_summary_to_dataframe(summaries: Sequence[SegmentSummary]) -> pd.DataFrame:
    return results_to_dataframe(summaries, SEGMENT_COLUMNS)


def clv_to_dataframe(metrics: Sequence[CLVMetrics]) -> pd.DataFrame:
    """CLV metrics with Decimal values converted to float."""
    return results_to_dataframe(metrics, CLV_COLUMNS, sort_by=["customer_id"])


def churn_to_dataframe(assessments: Sequence[ChurnAssessment]) -> pd.DataFrame:
    return results_to_dataframe(assessments, CHURN_COLUMNS, sort_by=["customer_id"])


def cohort_points_to_dataframe(points: Sequence[CohortPoint]) -> pd.DataFrame:
    """Long-format cohort table, one row per (cohort, period)."""
    return results_to_dataframe(points, COHORT_COLUMNS, sort_by=["cohort", "period"])


def retention_matrix(points: Sequence[CohortPoint]) -> pd.DataFrame:
    """Pivot cohort points into a cohort × period retention matrix.

    Rows are cohorts, columns are periods, values are retention
    percentages. Periods with no activity are NaN.

    Example:
        >>> matrix = retention_matrix(engine.get_cohort_analysis("store-1"))
        >>> matrix.loc["2024-01", 0]
        100.0
    """
    df = cohort_points_to_dataframe(points)
    if df.empty:
        return pd.DataFrame()
    return df.pivot(index="cohort", columns="period", values="retention_rate")
