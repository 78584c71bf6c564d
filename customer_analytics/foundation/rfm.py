"""RFM (Recency-Frequency-Monetary) scoring and segmentation.

RFM analysis segments customers based on three dimensions:
- Recency: How recently did the customer make a purchase?
- Frequency: How often do they purchase?
- Monetary: How much do they spend?

Each dimension is banded into a 1-5 score against quintile breakpoints
computed over the whole scored population, and the resulting 3-digit code
(e.g. "555") is mapped to a named segment through a fixed lookup table.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Sequence

from customer_analytics.foundation.quantiles import (
    calculate_quantile_breakpoints,
    get_score,
)
from customer_analytics.foundation.records import CustomerRecord, ensure_aware


class RFMSegment(str, Enum):
    """Named RFM segments, in lookup precedence order."""

    CHAMPIONS = "Champions"
    LOYAL_CUSTOMERS = "Loyal Customers"
    POTENTIAL_LOYALISTS = "Potential Loyalists"
    NEW_CUSTOMERS = "New Customers"
    PROMISING = "Promising"
    NEED_ATTENTION = "Need Attention"
    ABOUT_TO_SLEEP = "About to Sleep"
    AT_RISK = "At Risk"
    CANNOT_LOSE_THEM = "Cannot Lose Them"
    HIBERNATING = "Hibernating"
    LOST = "Lost"


#: Enumerated R-F-M codes per segment. This is the textbook table, overlaps
#: included; it must not be replaced by score-range logic. When a code is
#: listed twice (231, 241, 251) the earlier segment wins. Codes absent from
#: every set map to Lost.
SEGMENT_CODES: dict[RFMSegment, tuple[str, ...]] = {
    RFMSegment.CHAMPIONS: ("555", "554", "544", "545", "454", "455", "445"),
    RFMSegment.LOYAL_CUSTOMERS: (
        "543", "444", "435", "355", "354", "345", "344", "335",
    ),
    RFMSegment.POTENTIAL_LOYALISTS: (
        "553", "551", "552", "541", "542", "533", "532", "531",
        "452", "451", "442", "441", "431", "453", "433", "432",
        "423", "353", "352", "351", "342", "341", "333", "323",
    ),
    RFMSegment.NEW_CUSTOMERS: ("512", "511", "422", "421", "412", "411", "311"),
    RFMSegment.PROMISING: (
        "525", "524", "523", "522", "521", "515", "514", "513",
        "425", "424", "413", "414", "415", "315", "314", "313",
    ),
    RFMSegment.NEED_ATTENTION: (
        "535", "534", "443", "434", "343", "334", "325", "324",
    ),
    RFMSegment.ABOUT_TO_SLEEP: (
        "331", "321", "312", "221", "213", "231", "241", "251",
    ),
    RFMSegment.AT_RISK: (
        "255", "254", "245", "244", "253", "252", "243", "242",
        "235", "234", "225", "224", "153", "152", "145", "143",
        "142", "135", "134", "133", "125", "124",
    ),
    RFMSegment.CANNOT_LOSE_THEM: (
        "155", "154", "144", "214", "215", "115", "114", "113",
    ),
    RFMSegment.HIBERNATING: (
        "332", "322", "231", "241", "251", "233", "232", "223",
        "222", "132", "123", "122", "212", "211",
    ),
    RFMSegment.LOST: ("111", "112", "121", "131", "141", "151"),
}


def _build_lookup() -> dict[str, RFMSegment]:
    lookup: dict[str, RFMSegment] = {}
    for segment, codes in SEGMENT_CODES.items():
        for code in codes:
            lookup.setdefault(code, segment)
    return lookup


_SEGMENT_LOOKUP = _build_lookup()


def segment_for_code(rfm_code: str) -> RFMSegment:
    """Return the segment owning ``rfm_code``; unlisted codes are ``Lost``."""
    return _SEGMENT_LOOKUP.get(rfm_code, RFMSegment.LOST)


@dataclass(frozen=True)
class RFMScore:
    """RFM scores (1-5 quintiles) for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_score:
        Recency score (1-5, where 5 = most recent)
    frequency_score:
        Frequency score (1-5, where 5 = most frequent)
    monetary_score:
        Monetary score (1-5, where 5 = highest spend)
    rfm_code:
        Combined RFM code string (e.g., "555" for best customers)
    segment:
        Named segment looked up from ``rfm_code``
    recency_days:
        Days since last activity (or signup, whichever is later)
    frequency:
        Lifetime order count
    monetary:
        Lifetime spend in minor currency units
    """

    customer_id: str
    recency_score: int
    frequency_score: int
    monetary_score: int
    rfm_code: str
    segment: RFMSegment
    recency_days: int
    frequency: int
    monetary: int

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("recency_score", self.recency_score),
            ("frequency_score", self.frequency_score),
            ("monetary_score", self.monetary_score),
        ]:
            if not 1 <= score_value <= 5:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )
        expected_code = f"{self.recency_score}{self.frequency_score}{self.monetary_score}"
        if self.rfm_code != expected_code:
            raise ValueError(
                f"rfm_code ({self.rfm_code}) does not match r/f/m scores ({expected_code}) (customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "recency_score": self.recency_score,
            "frequency_score": self.frequency_score,
            "monetary_score": self.monetary_score,
            "rfm_code": self.rfm_code,
            "segment": self.segment.value,
            "recency_days": self.recency_days,
            "frequency": self.frequency,
            "monetary": self.monetary,
        }


def recency_days_for(customer: CustomerRecord, as_of: datetime) -> int:
    """Days from the later of last activity and signup to ``as_of``."""
    reference = customer.signup_ts
    if customer.last_activity_ts is not None and customer.last_activity_ts > reference:
        reference = customer.last_activity_ts
    return (ensure_aware(as_of) - reference).days


def score_customers(
    customers: Sequence[CustomerRecord], as_of: datetime
) -> list[RFMScore]:
    """Score every active customer with at least one order.

    Breakpoints are computed per dimension across the whole scored
    population on every call. Recency is banded on ascending days and then
    inverted (``6 - raw``) so that more recent customers score higher.

    Parameters
    ----------
    customers:
        Customer snapshot for a single tenant.
    as_of:
        Reference "now" for recency. A naive value is interpreted as UTC,
        as are naive customer timestamps.

    Returns
    -------
    list[RFMScore]
        One score per eligible customer, sorted by customer_id. Empty when
        no customer is eligible.

    Examples
    --------
    >>> from datetime import datetime
    >>> from customer_analytics.foundation.records import CustomerRecord
    >>> customers = [
    ...     CustomerRecord("C1", "t1", datetime(2024, 1, 1), datetime(2024, 6, 1), 5, 50_000),
    ...     CustomerRecord("C2", "t1", datetime(2024, 1, 1), datetime(2024, 3, 1), 1, 2_000),
    ... ]
    >>> scores = score_customers(customers, datetime(2024, 7, 1))
    >>> scores[0].recency_score >= scores[1].recency_score
    True
    """
    eligible = [c for c in customers if c.is_active and c.total_orders > 0]
    if not eligible:
        return []

    recency = [recency_days_for(c, as_of) for c in eligible]
    frequency = [c.total_orders for c in eligible]
    monetary = [c.total_spent for c in eligible]

    recency_breaks = calculate_quantile_breakpoints(recency)
    frequency_breaks = calculate_quantile_breakpoints(frequency)
    monetary_breaks = calculate_quantile_breakpoints(monetary)

    scores: list[RFMScore] = []
    for customer, r_days, f_value, m_value in zip(eligible, recency, frequency, monetary):
        r_score = 6 - get_score(r_days, recency_breaks)
        f_score = get_score(f_value, frequency_breaks)
        m_score = get_score(m_value, monetary_breaks)
        code = f"{r_score}{f_score}{m_score}"
        scores.append(
            RFMScore(
                customer_id=customer.customer_id,
                recency_score=r_score,
                frequency_score=f_score,
                monetary_score=m_score,
                rfm_code=code,
                segment=segment_for_code(code),
                recency_days=r_days,
                frequency=f_value,
                monetary=m_value,
            )
        )

    scores.sort(key=lambda s: s.customer_id)
    return scores


@dataclass(frozen=True)
class SegmentSummary:
    """Size and spend of one RFM segment."""

    segment: RFMSegment
    customer_count: int
    percentage: Decimal
    average_spent: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "segment": self.segment.value,
            "customer_count": self.customer_count,
            "percentage": float(self.percentage),
            "average_spent": float(self.average_spent),
        }


def summarize_segments(scores: Sequence[RFMScore]) -> list[SegmentSummary]:
    """Aggregate scores into per-segment counts, shares and average spend.

    Only segments with at least one customer are returned, ordered as in
    :data:`SEGMENT_CODES`.
    """
    if not scores:
        return []

    counts = Counter(s.segment for s in scores)
    spend: dict[RFMSegment, int] = defaultdict(int)
    for score in scores:
        spend[score.segment] += score.monetary

    total = Decimal(len(scores))
    cents = Decimal("0.01")
    summaries: list[SegmentSummary] = []
    for segment in RFMSegment:
        count = counts.get(segment, 0)
        if count == 0:
            continue
        summaries.append(
            SegmentSummary(
                segment=segment,
                customer_count=count,
                percentage=(Decimal(count) * 100 / total).quantize(
                    cents, rounding=ROUND_HALF_UP
                ),
                average_spent=(Decimal(spend[segment]) / count).quantize(
                    cents, rounding=ROUND_HALF_UP
                ),
            )
        )
    return summaries
