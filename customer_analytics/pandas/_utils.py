"""Shared utilities for pandas conversion operations."""

from typing import Any, Sequence

import pandas as pd


def results_to_dataframe(
    results: Sequence[Any], columns: Sequence[str], sort_by: Sequence[str] | None = None
) -> pd.DataFrame:
    """Convert value objects exposing ``as_dict()`` into a DataFrame.

    An empty input yields an empty DataFrame that still carries ``columns``
    so downstream code can rely on the schema.
    """
    if not results:
        return pd.DataFrame(columns=list(columns))

    df = pd.DataFrame([r.as_dict() for r in results], columns=list(columns))
    if sort_by:
        df = df.sort_values(list(sort_by)).reset_index(drop=True)
    return df


def require_columns(df: pd.DataFrame, required: Sequence[str], what: str) -> None:
    """Raise ValueError if ``df`` lacks any required column or has nulls in them."""
    missing_cols = set(required) - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {sorted(missing_cols)}")

    if df.empty:
        return

    null_cols = df[list(required)].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(
            f"Null/NaN values found in columns: {null_col_names}. "
            f"{what} require complete data."
        )
