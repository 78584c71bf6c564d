"""Collaborator interfaces for reading customers/orders and writing labels.

The engine never talks to a database directly. Callers supply an object
implementing :class:`CustomerDataProvider` (bulk reads) and, for the
tagger, :class:`SegmentSink` (per-customer writes). :class:`InMemoryStore`
implements both and backs the command line and the test-suite.
"""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence

from customer_analytics.foundation.records import (
    CustomerRecord,
    OrderRecord,
    RecordContract,
    ensure_aware,
)

MAX_SNAPSHOT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


class CustomerDataProvider(Protocol):
    """Bulk read access to a tenant's customers and orders."""

    def fetch_active_customers(
        self, tenant_id: str, since: datetime | None = None
    ) -> Sequence[CustomerRecord]:
        """Return active customers, optionally only those signed up at or after ``since``."""
        ...

    def fetch_orders(
        self, tenant_id: str, since: datetime | None = None
    ) -> Sequence[OrderRecord]:
        """Return non-cancelled orders, optionally only those created at or after ``since``."""
        ...


class SegmentSink(Protocol):
    """Per-customer write access used by the segment tagger."""

    def update_customer_type(
        self, tenant_id: str, customer_id: str, customer_type: str
    ) -> None: ...


class InMemoryStore:
    """Thread-safe in-memory implementation of both collaborator interfaces.

    Reads return copies so callers never observe later writes through a
    snapshot they already hold.
    """

    def __init__(
        self,
        customers: Iterable[CustomerRecord] = (),
        orders: Iterable[OrderRecord] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._customers: dict[tuple[str, str], CustomerRecord] = {}
        for customer in customers:
            key = (customer.tenant_id, customer.customer_id)
            if key in self._customers:
                raise ValueError(
                    f"Duplicate customer_id {customer.customer_id} for tenant {customer.tenant_id}"
                )
            self._customers[key] = customer
        self._orders: list[OrderRecord] = list(orders)

    @classmethod
    def from_snapshot(
        cls, payload: Mapping[str, Any], *, default_tenant_id: str = "default"
    ) -> "InMemoryStore":
        """Build a store from ``{"customers": [...], "orders": [...]}``."""

        contract = RecordContract(default_tenant_id=default_tenant_id)
        return cls(
            customers=contract.validate_customers(payload.get("customers", [])),
            orders=contract.validate_orders(payload.get("orders", [])),
        )

    def fetch_active_customers(
        self, tenant_id: str, since: datetime | None = None
    ) -> list[CustomerRecord]:
        with self._lock:
            return [
                customer
                for (owner, _), customer in self._customers.items()
                if owner == tenant_id
                and customer.is_active
                and (since is None or customer.signup_ts >= ensure_aware(since))
            ]

    def fetch_orders(
        self, tenant_id: str, since: datetime | None = None
    ) -> list[OrderRecord]:
        with self._lock:
            return [
                order
                for order in self._orders
                if order.tenant_id == tenant_id
                and not order.is_cancelled
                and (since is None or order.created_ts >= ensure_aware(since))
            ]

    def update_customer_type(
        self, tenant_id: str, customer_id: str, customer_type: str
    ) -> None:
        with self._lock:
            key = (tenant_id, customer_id)
            existing = self._customers.get(key)
            if existing is None:
                raise KeyError(
                    f"Customer {customer_id} not found for tenant {tenant_id}"
                )
            self._customers[key] = replace(existing, customer_type=customer_type)

    def get_customer(self, tenant_id: str, customer_id: str) -> CustomerRecord | None:
        with self._lock:
            return self._customers.get((tenant_id, customer_id))

    def as_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Return a JSON-serialisable snapshot (inverse of :meth:`from_snapshot`)."""

        with self._lock:
            return {
                "customers": [c.as_dict() for c in self._customers.values()],
                "orders": [o.as_dict() for o in self._orders],
            }


def load_snapshot(path: Path, *, default_tenant_id: str = "default") -> InMemoryStore:
    """Load a JSON snapshot file into an :class:`InMemoryStore`."""

    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_SNAPSHOT_BYTES:
        raise ValueError(
            f"Snapshot file {resolved} is {size} bytes; exceeds limit of {MAX_SNAPSHOT_BYTES} bytes"
        )
    with resolved.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, Mapping):
        raise ValueError("Expected a JSON object with 'customers' and 'orders' lists")
    return InMemoryStore.from_snapshot(payload, default_tenant_id=default_tenant_id)
