"""Tests for threshold-based churn assessment."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from customer_analytics.foundation.records import CustomerRecord
from customer_analytics.models.churn import (
    ChurnAssessment,
    ChurnRisk,
    assess_churn,
    classify_churn,
    summarize_churn,
)

AS_OF = datetime(2024, 12, 31, 12, 0)


def _customer(customer_id, days_idle, total_orders=3):
    last_activity = AS_OF - timedelta(days=days_idle) if days_idle is not None else None
    return CustomerRecord(
        customer_id=customer_id,
        tenant_id="t1",
        signup_ts=datetime(2023, 1, 1),
        last_activity_ts=last_activity,
        total_orders=total_orders,
        total_spent=total_orders * 1_000,
    )


class TestClassifyChurn:
    """Test the churn threshold table."""

    @pytest.mark.parametrize(
        "days,risk,probability",
        [
            (365, ChurnRisk.HIGH, 85),
            (181, ChurnRisk.HIGH, 85),
            (180, ChurnRisk.MEDIUM, 50),
            (95, ChurnRisk.MEDIUM, 50),
            (91, ChurnRisk.MEDIUM, 50),
            (90, ChurnRisk.LOW, 25),
            (61, ChurnRisk.LOW, 25),
            (60, ChurnRisk.LOW, 0),
            (0, ChurnRisk.LOW, 0),
        ],
    )
    def test_thresholds(self, days, risk, probability):
        """Thresholds are exclusive and evaluated top-down."""
        assert classify_churn(days) == (risk, probability)


class TestAssessChurn:
    """Test assess_churn."""

    def test_empty(self):
        assert assess_churn([], AS_OF) == []

    def test_partial_days_are_floored(self):
        """180 days and some hours is still exactly 180 whole days."""
        customer = CustomerRecord(
            customer_id="C1",
            tenant_id="t1",
            signup_ts=datetime(2023, 1, 1),
            last_activity_ts=AS_OF - timedelta(days=180, hours=6),
            total_orders=2,
            total_spent=2_000,
        )
        [assessment] = assess_churn([customer], AS_OF)
        assert assessment.days_since_last_order == 180
        assert assessment.churn_risk is ChurnRisk.MEDIUM
        assert assessment.churn_probability == 50

    def test_customers_without_orders_or_activity_are_skipped(self):
        customers = [
            _customer("C1", 10),
            _customer("C2", None),
            _customer("C3", 200, total_orders=0),
        ]
        assert [a.customer_id for a in assess_churn(customers, AS_OF)] == ["C1"]

    def test_results_sorted_by_customer_id(self):
        customers = [_customer("C3", 200), _customer("C1", 5), _customer("C2", 95)]
        assessments = assess_churn(customers, AS_OF)
        assert [a.customer_id for a in assessments] == ["C1", "C2", "C3"]
        assert [a.churn_risk for a in assessments] == [
            ChurnRisk.LOW,
            ChurnRisk.MEDIUM,
            ChurnRisk.HIGH,
        ]

    def test_naive_records_with_aware_as_of(self):
        """Naive record timestamps are read as UTC against an aware as_of."""
        as_of = AS_OF.replace(tzinfo=timezone.utc)
        [assessment] = assess_churn([_customer("C1", 95)], as_of)
        assert assessment.days_since_last_order == 95
        assert assessment.churn_risk is ChurnRisk.MEDIUM

    def test_as_dict(self):
        [assessment] = assess_churn([_customer("C1", 70)], AS_OF)
        assert assessment.as_dict() == {
            "customer_id": "C1",
            "days_since_last_order": 70,
            "churn_risk": "low",
            "churn_probability": 25,
        }


class TestChurnAssessment:
    def test_probability_out_of_range_raises_error(self):
        with pytest.raises(ValueError, match="churn_probability must be between 0 and 100"):
            ChurnAssessment("C1", 10, ChurnRisk.LOW, 101)


class TestSummarizeChurn:
    """Test summarize_churn."""

    def test_empty(self):
        summary = summarize_churn([])
        assert summary.total_customers == 0
        assert summary.expected_churners == Decimal("0")

    def test_counts_and_expected_churners(self):
        customers = [
            _customer("C1", 200),
            _customer("C2", 100),
            _customer("C3", 70),
            _customer("C4", 10),
        ]
        summary = summarize_churn(assess_churn(customers, AS_OF))

        assert summary.total_customers == 4
        assert summary.high_risk == 1
        assert summary.medium_risk == 1
        assert summary.low_risk == 2
        # (85 + 50 + 25 + 0) / 100
        assert summary.expected_churners == Decimal("1.6")
