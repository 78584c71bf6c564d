"""Foundational building blocks for customer analytics.

This package exposes the customer/order record definitions, the data
provider interfaces the engine reads through, and RFM
(Recency-Frequency-Monetary) scoring and segmentation.
"""

from .providers import (
    CustomerDataProvider,
    InMemoryStore,
    SegmentSink,
    load_snapshot,
)
from .quantiles import calculate_quantile_breakpoints, get_score
from .records import CustomerRecord, OrderRecord, OrderStatus, RecordContract
from .rfm import (
    SEGMENT_CODES,
    RFMScore,
    RFMSegment,
    SegmentSummary,
    score_customers,
    segment_for_code,
    summarize_segments,
)

__all__ = [
    "CustomerDataProvider",
    "InMemoryStore",
    "SegmentSink",
    "load_snapshot",
    "calculate_quantile_breakpoints",
    "get_score",
    "CustomerRecord",
    "OrderRecord",
    "OrderStatus",
    "RecordContract",
    "SEGMENT_CODES",
    "RFMScore",
    "RFMSegment",
    "SegmentSummary",
    "score_customers",
    "segment_for_code",
    "summarize_segments",
]
