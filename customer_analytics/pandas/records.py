"""Pandas DataFrame adapters for customer and order snapshots."""

from typing import List

import pandas as pd  # type: ignore

from customer_analytics.foundation.records import (
    CustomerRecord,
    OrderRecord,
    OrderStatus,
)
from ._utils import require_columns


def _optional_ts(value):
    if value is None or pd.isna(value):
        return None
    return pd.to_datetime(value).to_pydatetime()


def dataframe_to_customers(
    customers_df: pd.DataFrame,
    tenant_id: str,
    customer_id_col: str = "customer_id",
    signup_col: str = "signup_ts",
    last_activity_col: str = "last_activity_ts",
    total_orders_col: str = "total_orders",
    total_spent_col: str = "total_spent",
) -> List[CustomerRecord]:
    """Convert a customers DataFrame into CustomerRecord objects.

    ``last_activity_col`` may contain nulls (customers who never ordered);
    all other mapped columns must be complete.

    Example:
        >>> customers = dataframe_to_customers(df, tenant_id="store-1")
        >>> scores = score_customers(customers, datetime(2024, 6, 30))
    """
    required = [customer_id_col, signup_col, total_orders_col, total_spent_col]
    require_columns(customers_df, required, "Customer records")
    if last_activity_col not in customers_df.columns:
        raise ValueError(f"DataFrame missing required columns: ['{last_activity_col}']")

    customers = []
    for record in customers_df.to_dict("records"):
        customers.append(
            CustomerRecord(
                customer_id=str(record[customer_id_col]),
                tenant_id=tenant_id,
                signup_ts=pd.to_datetime(record[signup_col]).to_pydatetime(),
                last_activity_ts=_optional_ts(record[last_activity_col]),
                total_orders=int(record[total_orders_col]),
                total_spent=int(record[total_spent_col]),
            )
        )
    return customers


def dataframe_to_orders(
    orders_df: pd.DataFrame,
    tenant_id: str,
    order_id_col: str = "order_id",
    customer_id_col: str = "customer_id",
    amount_col: str = "total_amount",
    created_col: str = "created_ts",
    status_col: str = "status",
) -> List[OrderRecord]:
    """Convert an orders DataFrame into OrderRecord objects.

    The status column is optional; when absent every order is treated as
    completed.
    """
    required = [order_id_col, customer_id_col, amount_col, created_col]
    require_columns(orders_df, required, "Order records")

    has_status = status_col in orders_df.columns
    orders = []
    for record in orders_df.to_dict("records"):
        status = OrderStatus(record[status_col]) if has_status else OrderStatus.COMPLETED
        orders.append(
            OrderRecord(
                order_id=str(record[order_id_col]),
                customer_id=str(record[customer_id_col]),
                tenant_id=tenant_id,
                total_amount=int(record[amount_col]),
                created_ts=pd.to_datetime(record[created_col]).to_pydatetime(),
                status=status,
            )
        )
    return orders
