"""Customer analytics and segmentation engine for retail point-of-sale data.

Batch RFM scoring, CLV estimation, signup-cohort retention and churn risk,
plus a segment tagger that writes coarse customer types back to storage.
"""

from customer_analytics.config import EngineConfig
from customer_analytics.engine import CustomerAnalyticsEngine
from customer_analytics.errors import (
    AnalyticsError,
    ConfigurationError,
    DataProviderError,
)

__version__ = "1.0.0"

__all__ = [
    "AnalyticsError",
    "ConfigurationError",
    "CustomerAnalyticsEngine",
    "DataProviderError",
    "EngineConfig",
    "__version__",
]
