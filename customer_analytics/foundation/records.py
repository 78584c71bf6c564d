"""Customer and order record definitions and validation utilities.

The records capture the minimum pieces of information the analytics
engine needs from the point-of-sale store: who the customer is, when
they signed up, when they were last active and what they spent. Money
is always carried as integer minor currency units (e.g. cents) so that
aggregates never accumulate floating point error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0"}


def ensure_aware(ts: datetime) -> datetime:
    """Return ``ts`` with naive values interpreted as UTC.

    Aware values are returned unchanged, so naive and aware inputs can be
    compared and subtracted safely.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class OrderStatus(str, Enum):
    """Lifecycle states of a point-of-sale order."""

    COMPLETED = "completed"
    PENDING = "pending"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CustomerRecord:
    """Read-only snapshot of a customer row.

    Attributes
    ----------
    customer_id:
        Unique identifier of the customer within the tenant.
    tenant_id:
        Store/tenant owning the customer.
    signup_ts:
        Timestamp the customer record was created.
    last_activity_ts:
        Timestamp of the customer's most recent order, or None if the
        customer never ordered.
    total_orders:
        Lifetime order count maintained by the store.
    total_spent:
        Lifetime spend in minor currency units.
    is_active:
        Whether the customer is active (inactive customers are never
        returned by data providers).
    customer_type:
        Coarse label (``vip``/``premium``/``regular``) written back by
        the segment tagger.
    """

    customer_id: str
    tenant_id: str
    signup_ts: datetime
    last_activity_ts: datetime | None = None
    total_orders: int = 0
    total_spent: int = 0
    is_active: bool = True
    customer_type: str | None = None

    def __post_init__(self) -> None:
        # Naive timestamps are stored as UTC
        object.__setattr__(self, "signup_ts", ensure_aware(self.signup_ts))
        if self.last_activity_ts is not None:
            object.__setattr__(
                self, "last_activity_ts", ensure_aware(self.last_activity_ts)
            )
        if self.total_orders < 0:
            raise ValueError(
                f"total_orders cannot be negative: {self.total_orders} (customer_id={self.customer_id})"
            )
        if self.total_spent < 0:
            raise ValueError(
                f"total_spent cannot be negative: {self.total_spent} (customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "tenant_id": self.tenant_id,
            "signup_ts": self.signup_ts.isoformat(),
            "last_activity_ts": (
                self.last_activity_ts.isoformat() if self.last_activity_ts else None
            ),
            "total_orders": self.total_orders,
            "total_spent": self.total_spent,
            "is_active": self.is_active,
            "customer_type": self.customer_type,
        }


@dataclass(frozen=True)
class OrderRecord:
    """Read-only snapshot of an order row."""

    order_id: str
    customer_id: str
    tenant_id: str
    total_amount: int
    created_ts: datetime
    status: OrderStatus = OrderStatus.COMPLETED

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_ts", ensure_aware(self.created_ts))
        if self.total_amount < 0:
            raise ValueError(
                f"total_amount cannot be negative: {self.total_amount} (order_id={self.order_id})"
            )

    @property
    def is_cancelled(self) -> bool:
        return self.status is OrderStatus.CANCELLED

    @property
    def is_completed(self) -> bool:
        return self.status is OrderStatus.COMPLETED

    def as_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "tenant_id": self.tenant_id,
            "total_amount": self.total_amount,
            "created_ts": self.created_ts.isoformat(),
            "status": self.status.value,
        }


def _parse_ts(value: Any, *, field_name: str, record_index: int) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, str):
        try:
            return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise TypeError(
        f"{field_name} must be a datetime or ISO 8601 string",
        {"record_index": record_index, "value": value},
    )


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _parse_bool(value: Any, *, field_name: str, record_index: int) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(
        f"{field_name} must be a boolean",
        {"record_index": record_index, "value": value},
    )


class RecordContract:
    """Validate raw customer/order mappings into canonical records."""

    #: Fields that must be populated for a customer record to be valid.
    REQUIRED_CUSTOMER_FIELDS = {"customer_id", "signup_ts"}
    #: Fields that must be populated for an order record to be valid.
    REQUIRED_ORDER_FIELDS = {"order_id", "customer_id", "created_ts"}

    def __init__(self, default_tenant_id: str = "default") -> None:
        self.default_tenant_id = default_tenant_id

    def validate_customers(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[CustomerRecord]:
        """Validate raw customer dictionaries.

        Records without a ``tenant_id`` are assigned
        :attr:`default_tenant_id`. Timestamps may be datetimes or ISO 8601
        strings; values without an offset are taken as UTC. ``is_active``
        accepts booleans, 0/1 and strings such as ``"true"``/``"false"``.
        """

        canonical: list[CustomerRecord] = []
        for idx, record in enumerate(records):
            data = dict(record)
            missing = [
                name for name in self.REQUIRED_CUSTOMER_FIELDS if _is_missing(data.get(name))
            ]
            if missing:
                raise ValueError(
                    "Customer record missing required fields",
                    {"missing_fields": sorted(missing), "record_index": idx},
                )

            last_activity = data.get("last_activity_ts")
            canonical.append(
                CustomerRecord(
                    customer_id=str(data["customer_id"]),
                    tenant_id=str(data.get("tenant_id") or self.default_tenant_id),
                    signup_ts=_parse_ts(
                        data["signup_ts"], field_name="signup_ts", record_index=idx
                    ),
                    last_activity_ts=(
                        _parse_ts(
                            last_activity,
                            field_name="last_activity_ts",
                            record_index=idx,
                        )
                        if not _is_missing(last_activity)
                        else None
                    ),
                    total_orders=int(data.get("total_orders", 0)),
                    total_spent=int(data.get("total_spent", 0)),
                    is_active=_parse_bool(
                        True if data.get("is_active") is None else data["is_active"],
                        field_name="is_active",
                        record_index=idx,
                    ),
                    customer_type=data.get("customer_type"),
                )
            )
        return canonical

    def validate_orders(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[OrderRecord]:
        """Validate raw order dictionaries.

        Unknown status values raise ``ValueError``; a missing status is
        treated as ``completed``.
        """

        canonical: list[OrderRecord] = []
        for idx, record in enumerate(records):
            data = dict(record)
            missing = [
                name for name in self.REQUIRED_ORDER_FIELDS if _is_missing(data.get(name))
            ]
            if missing:
                raise ValueError(
                    "Order record missing required fields",
                    {"missing_fields": sorted(missing), "record_index": idx},
                )

            try:
                status = OrderStatus(data.get("status") or OrderStatus.COMPLETED.value)
            except ValueError:
                raise ValueError(
                    "Unknown order status",
                    {"record_index": idx, "value": data.get("status")},
                ) from None

            canonical.append(
                OrderRecord(
                    order_id=str(data["order_id"]),
                    customer_id=str(data["customer_id"]),
                    tenant_id=str(data.get("tenant_id") or self.default_tenant_id),
                    total_amount=int(data.get("total_amount", 0)),
                    created_ts=_parse_ts(
                        data["created_ts"], field_name="created_ts", record_index=idx
                    ),
                    status=status,
                )
            )
        return canonical
