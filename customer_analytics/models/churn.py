"""Threshold-based churn risk assessment.

Churn risk is derived solely from days since the customer's last order.
Thresholds are evaluated in descending order and the first match wins:

=================  =========  ===========
Days since order   Risk       Probability
=================  =========  ===========
> 180              high       85
> 90               medium     50
> 60               low        25
otherwise          low        0
=================  =========  ===========

The two ``low`` rows are distinct buckets: they share a risk label but
report different probabilities, and both are externally observable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence

from customer_analytics.foundation.records import CustomerRecord, ensure_aware


class ChurnRisk(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


#: (exclusive lower bound in days, risk, probability), checked top to bottom.
CHURN_THRESHOLDS: tuple[tuple[int, ChurnRisk, int], ...] = (
    (180, ChurnRisk.HIGH, 85),
    (90, ChurnRisk.MEDIUM, 50),
    (60, ChurnRisk.LOW, 25),
)
BASELINE_RISK = (ChurnRisk.LOW, 0)


@dataclass(frozen=True)
class ChurnAssessment:
    """Churn risk for a single customer."""

    customer_id: str
    days_since_last_order: int
    churn_risk: ChurnRisk
    churn_probability: int

    def __post_init__(self) -> None:
        if not 0 <= self.churn_probability <= 100:
            raise ValueError(
                f"churn_probability must be between 0 and 100: {self.churn_probability} "
                f"(customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "days_since_last_order": self.days_since_last_order,
            "churn_risk": self.churn_risk.value,
            "churn_probability": self.churn_probability,
        }


def classify_churn(days_since_last_order: int) -> tuple[ChurnRisk, int]:
    """Return ``(risk, probability)`` for a number of idle days."""
    for threshold, risk, probability in CHURN_THRESHOLDS:
        if days_since_last_order > threshold:
            return risk, probability
    return BASELINE_RISK


def assess_churn(
    customers: Sequence[CustomerRecord], as_of: datetime
) -> list[ChurnAssessment]:
    """Assess churn risk for customers with orders and a known last activity.

    Customers without orders or with a null ``last_activity_ts`` are
    skipped. Results are sorted by customer_id.
    """
    assessments: list[ChurnAssessment] = []
    for customer in customers:
        if customer.total_orders <= 0 or customer.last_activity_ts is None:
            continue
        days = (ensure_aware(as_of) - customer.last_activity_ts).days
        risk, probability = classify_churn(days)
        assessments.append(
            ChurnAssessment(
                customer_id=customer.customer_id,
                days_since_last_order=days,
                churn_risk=risk,
                churn_probability=probability,
            )
        )
    assessments.sort(key=lambda a: a.customer_id)
    return assessments


@dataclass(frozen=True)
class ChurnSummary:
    """Roll-up of churn assessments for a tenant."""

    total_customers: int
    high_risk: int
    medium_risk: int
    low_risk: int
    expected_churners: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_customers": self.total_customers,
            "high_risk": self.high_risk,
            "medium_risk": self.medium_risk,
            "low_risk": self.low_risk,
            "expected_churners": float(self.expected_churners),
        }


def summarize_churn(assessments: Sequence[ChurnAssessment]) -> ChurnSummary:
    """Count customers per risk tier and the probability-weighted churner count."""
    counts = {risk: 0 for risk in ChurnRisk}
    probability_total = 0
    for assessment in assessments:
        counts[assessment.churn_risk] += 1
        probability_total += assessment.churn_probability
    return ChurnSummary(
        total_customers=len(assessments),
        high_risk=counts[ChurnRisk.HIGH],
        medium_risk=counts[ChurnRisk.MEDIUM],
        low_risk=counts[ChurnRisk.LOW],
        expected_churners=Decimal(probability_total) / 100,
    )
