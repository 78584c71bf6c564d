"""Exception hierarchy for the customer analytics engine."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""


class DataProviderError(AnalyticsError):
    """A bulk read against the data provider failed.

    Nothing meaningful can be computed without input data, so the whole
    analysis call fails; no partial result is returned.
    """

    def __init__(self, tenant_id: str, operation: str, message: str) -> None:
        super().__init__(
            f"Data provider failed during {operation} for tenant {tenant_id}: {message}"
        )
        self.tenant_id = tenant_id
        self.operation = operation


class ConfigurationError(AnalyticsError):
    """Engine configuration could not be loaded or validated."""
