"""Segment tagger: write coarse customer-type labels derived from RFM.

Each customer's write is isolated. A failing write is recorded in the
result's ``errors`` list and the remaining customers are still tagged;
``tagged_count`` only counts successful writes.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

import structlog

from customer_analytics.foundation.providers import SegmentSink
from customer_analytics.foundation.rfm import RFMScore, RFMSegment

logger = structlog.get_logger(__name__)


class CustomerType(str, Enum):
    VIP = "vip"
    PREMIUM = "premium"
    REGULAR = "regular"


SEGMENT_CUSTOMER_TYPES: dict[RFMSegment, CustomerType] = {
    RFMSegment.CHAMPIONS: CustomerType.VIP,
    RFMSegment.CANNOT_LOSE_THEM: CustomerType.VIP,
    RFMSegment.LOYAL_CUSTOMERS: CustomerType.PREMIUM,
    RFMSegment.POTENTIAL_LOYALISTS: CustomerType.PREMIUM,
}


def customer_type_for(segment: RFMSegment) -> CustomerType:
    return SEGMENT_CUSTOMER_TYPES.get(segment, CustomerType.REGULAR)


@dataclass(frozen=True)
class TaggingError:
    customer_id: str
    message: str

    def as_dict(self) -> dict[str, Any]:
        return {"customer_id": self.customer_id, "message": self.message}


@dataclass(frozen=True)
class TaggingResult:
    """Outcome of a tagging batch."""

    tagged_count: int
    errors: list[TaggingError] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "tagged_count": self.tagged_count,
            "errors": [error.as_dict() for error in self.errors],
        }


def _write_tag(
    sink: SegmentSink, tenant_id: str, score: RFMScore
) -> TaggingError | None:
    customer_type = customer_type_for(score.segment)
    try:
        sink.update_customer_type(tenant_id, score.customer_id, customer_type.value)
    except Exception as exc:  # one customer's failure must not abort the batch
        logger.warning(
            "customer_tag_failed",
            tenant_id=tenant_id,
            customer_id=score.customer_id,
            customer_type=customer_type.value,
            error=str(exc),
        )
        return TaggingError(customer_id=score.customer_id, message=str(exc))
    return None


def tag_customers(
    scores: Sequence[RFMScore],
    sink: SegmentSink,
    tenant_id: str,
    max_workers: int = 1,
) -> TaggingResult:
    """Write the customer type for every score through ``sink``.

    Parameters
    ----------
    scores:
        RFM scores to tag, typically fresh from ``score_customers``.
    sink:
        Persistence sink accepting per-customer updates.
    tenant_id:
        Tenant owning the customers.
    max_workers:
        Writes run sequentially when 1; otherwise on a thread pool of this
        size. Outcomes are identical either way and errors are reported in
        the order of ``scores``.
    """
    if max_workers > 1 and len(scores) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(
                pool.map(lambda score: _write_tag(sink, tenant_id, score), scores)
            )
    else:
        outcomes = [_write_tag(sink, tenant_id, score) for score in scores]

    errors = [outcome for outcome in outcomes if outcome is not None]
    return TaggingResult(tagged_count=len(outcomes) - len(errors), errors=errors)
