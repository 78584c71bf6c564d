"""Pandas DataFrame adapters for customer analytics components."""

from .records import dataframe_to_customers, dataframe_to_orders
from .results import (
    churn_to_dataframe,
    clv_to_dataframe,
    cohort_points_to_dataframe,
    retention_matrix,
    rfm_scores_to_dataframe,
    segment_summary_to_dataframe,
)

__all__ = [
    # Input adapters
    "dataframe_to_customers",
    "dataframe_to_orders",
    # Result adapters
    "rfm_scores_to_dataframe",
    "segment_summary_to_dataframe",
    "clv_to_dataframe",
    "churn_to_dataframe",
    "cohort_points_to_dataframe",
    "retention_matrix",
]
