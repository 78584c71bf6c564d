"""Per-tenant entry points of the customer analytics engine.

Each call pulls a fresh snapshot from the data provider, computes in
memory and returns plain value objects. Nothing is cached between calls,
so quantile breakpoints always reflect the current population.

Example
-------
>>> from customer_analytics.foundation.providers import InMemoryStore
>>> engine = CustomerAnalyticsEngine(InMemoryStore())
>>> engine.calculate_rfm("tenant-1")
[]
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Sequence, TypeVar

import structlog

from customer_analytics.analyses.cohorts import (
    CohortPoint,
    analyze_cohorts,
    window_start_for,
)
from customer_analytics.config import EngineConfig
from customer_analytics.errors import AnalyticsError, DataProviderError
from customer_analytics.foundation.providers import CustomerDataProvider, SegmentSink
from customer_analytics.foundation.records import (
    CustomerRecord,
    OrderRecord,
    ensure_aware,
)
from customer_analytics.foundation.rfm import (
    RFMScore,
    SegmentSummary,
    score_customers,
    summarize_segments,
)
from customer_analytics.models.churn import (
    ChurnAssessment,
    ChurnSummary,
    assess_churn,
    summarize_churn,
)
from customer_analytics.models.clv import CLVMetrics, estimate_clv
from customer_analytics.tagging import TaggingResult, tag_customers

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerAnalyticsEngine:
    """RFM, CLV, cohort and churn analytics over a data provider.

    Parameters
    ----------
    provider:
        Bulk read access to customers and non-cancelled orders.
    sink:
        Per-customer write access for :meth:`auto_tag_customers`. Defaults
        to ``provider`` when it also implements ``update_customer_type``.
    config:
        Thresholds and tunables; defaults to :class:`EngineConfig`.
    clock:
        Callable returning the reference "now". Naive values, like naive
        record timestamps, are interpreted as UTC.
    """

    def __init__(
        self,
        provider: CustomerDataProvider,
        sink: SegmentSink | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.provider = provider
        if sink is None and hasattr(provider, "update_customer_type"):
            sink = provider  # type: ignore[assignment]
        self.sink = sink
        self.config = config or EngineConfig()
        self.clock = clock

    def _read(
        self,
        tenant_id: str,
        operation: str,
        fetch: Callable[..., Sequence[T]],
        since: datetime | None = None,
    ) -> list[T]:
        try:
            return list(fetch(tenant_id, since=since))
        except Exception as exc:
            logger.error(
                "data_provider_read_failed",
                tenant_id=tenant_id,
                operation=operation,
                error=str(exc),
            )
            raise DataProviderError(tenant_id, operation, str(exc)) from exc

    def _customers(
        self, tenant_id: str, since: datetime | None = None
    ) -> list[CustomerRecord]:
        return self._read(
            tenant_id, "fetch_active_customers", self.provider.fetch_active_customers, since
        )

    def _orders(self, tenant_id: str, since: datetime | None = None) -> list[OrderRecord]:
        return self._read(tenant_id, "fetch_orders", self.provider.fetch_orders, since)

    def calculate_rfm(self, tenant_id: str) -> list[RFMScore]:
        """Score every active customer with at least one order."""
        now = ensure_aware(self.clock())
        customers = self._customers(tenant_id)
        scores = score_customers(customers, as_of=now)
        logger.info(
            "rfm_calculated",
            tenant_id=tenant_id,
            customer_count=len(customers),
            scored_count=len(scores),
        )
        return scores

    def get_segment_distribution(self, tenant_id: str) -> list[SegmentSummary]:
        """Per-segment counts, shares and average spend for the dashboard."""
        return summarize_segments(self.calculate_rfm(tenant_id))

    def calculate_clv(self, tenant_id: str) -> list[CLVMetrics]:
        """Estimate CLV for customers with at least one completed order."""
        customers = self._customers(tenant_id)
        orders = self._orders(tenant_id)
        metrics = estimate_clv(customers, orders, config=self.config)
        logger.info(
            "clv_calculated",
            tenant_id=tenant_id,
            order_count=len(orders),
            customer_count=len(metrics),
        )
        return metrics

    def get_cohort_analysis(
        self, tenant_id: str, months_window: int | None = None
    ) -> list[CohortPoint]:
        """Retention curves for signup cohorts within the trailing window."""
        if months_window is None:
            months_window = self.config.default_months_window
        now = ensure_aware(self.clock())
        window_start = window_start_for(now, months_window)
        customers = self._customers(tenant_id, since=window_start)
        orders = self._orders(tenant_id, since=window_start)
        points = analyze_cohorts(customers, orders, as_of=now, months_window=months_window)
        logger.info(
            "cohort_analysis_calculated",
            tenant_id=tenant_id,
            months_window=months_window,
            cohort_count=len({p.cohort for p in points}),
            point_count=len(points),
        )
        return points

    def get_churn_prediction(self, tenant_id: str) -> list[ChurnAssessment]:
        """Churn risk for customers with orders and a known last activity."""
        now = ensure_aware(self.clock())
        assessments = assess_churn(self._customers(tenant_id), as_of=now)
        logger.info(
            "churn_prediction_calculated",
            tenant_id=tenant_id,
            assessed_count=len(assessments),
        )
        return assessments

    def get_churn_summary(self, tenant_id: str) -> ChurnSummary:
        return summarize_churn(self.get_churn_prediction(tenant_id))

    def auto_tag_customers(self, tenant_id: str) -> TaggingResult:
        """Run RFM and write each customer's coarse type through the sink.

        Per-customer write failures are collected in ``errors`` rather
        than raised. Provider read failures still raise
        :class:`DataProviderError`.
        """
        if self.sink is None:
            raise AnalyticsError("auto_tag_customers requires a segment sink")

        scores = self.calculate_rfm(tenant_id)
        result = tag_customers(
            scores,
            self.sink,
            tenant_id,
            max_workers=self.config.tagging_max_workers,
        )
        logger.info(
            "customers_tagged",
            tenant_id=tenant_id,
            total_count=len(scores),
            tagged_count=result.tagged_count,
            error_count=len(result.errors),
        )
        return result
