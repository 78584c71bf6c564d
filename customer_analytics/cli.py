"""Command line entry points for the customer analytics engine.

Every command reads a JSON snapshot ``{"customers": [...], "orders": [...]}``
and writes its result as JSON to ``--output`` or stdout. Snapshot
timestamps and ``--as-of`` dates without a UTC offset are treated as UTC.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from customer_analytics.config import EngineConfig
from customer_analytics.engine import CustomerAnalyticsEngine
from customer_analytics.errors import AnalyticsError
from customer_analytics.foundation.providers import InMemoryStore, load_snapshot
from customer_analytics.observability import configure_logging

logger = structlog.get_logger(__name__)

COMMANDS = ("rfm", "segments", "clv", "cohorts", "churn", "churn-summary", "tag")


def _parse_as_of(value: str | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="customer-analytics",
        description="RFM, CLV, cohort and churn analytics over a JSON snapshot",
    )
    parser.add_argument("command", choices=COMMANDS, help="Analysis to run")
    parser.add_argument(
        "snapshot", type=Path, help="Path to JSON snapshot with customers and orders"
    )
    parser.add_argument(
        "--tenant", default="default", help="Tenant identifier (default: default)"
    )
    parser.add_argument(
        "--as-of",
        dest="as_of",
        help="Reference date (ISO format). Defaults to the current UTC time.",
    )
    parser.add_argument(
        "--months-window",
        type=int,
        default=None,
        help="Trailing window in months for cohort analysis (default: 12)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for the JSON result. For 'tag' the updated snapshot "
        "is written next to it with a '.snapshot.json' suffix.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging on stderr"
    )
    return parser


def _run(
    command: str,
    engine: CustomerAnalyticsEngine,
    tenant_id: str,
    months_window: int | None,
) -> Any:
    if command == "rfm":
        return [s.as_dict() for s in engine.calculate_rfm(tenant_id)]
    if command == "segments":
        return [s.as_dict() for s in engine.get_segment_distribution(tenant_id)]
    if command == "clv":
        return [m.as_dict() for m in engine.calculate_clv(tenant_id)]
    if command == "cohorts":
        return [
            p.as_dict() for p in engine.get_cohort_analysis(tenant_id, months_window)
        ]
    if command == "churn":
        return [a.as_dict() for a in engine.get_churn_prediction(tenant_id)]
    if command == "churn-summary":
        return engine.get_churn_summary(tenant_id).as_dict()
    if command == "tag":
        return engine.auto_tag_customers(tenant_id).as_dict()
    raise ValueError(f"Unknown command: {command}")  # pragma: no cover - argparse guards


def _write_json(payload: Any, output: Path | None) -> None:
    if output is None:
        json.dump(payload, fp=sys.stdout, indent=2, sort_keys=True)
        print()
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, sort_keys=True)


def run_cli(argv: list[str] | None = None) -> int:
    """Run one analysis command.

    Returns:
        Exit code (0 for success, 1 for data or configuration errors)
    """
    args = _build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = EngineConfig.from_env()
        store: InMemoryStore = load_snapshot(args.snapshot, default_tenant_id=args.tenant)
    except (AnalyticsError, ValueError, TypeError, OSError) as exc:
        logger.error("snapshot_load_failed", path=str(args.snapshot), error=str(exc))
        return 1

    as_of = _parse_as_of(args.as_of)
    engine = CustomerAnalyticsEngine(store, config=config, clock=lambda: as_of)

    try:
        payload = _run(args.command, engine, args.tenant, args.months_window)
    except (AnalyticsError, ValueError, TypeError) as exc:
        logger.error("analysis_failed", command=args.command, error=str(exc))
        return 1

    _write_json(payload, args.output)

    if args.command == "tag" and args.output is not None:
        snapshot_path = args.output.with_suffix(".snapshot.json")
        _write_json(store.as_dict(), snapshot_path)
        logger.info("snapshot_written", path=str(snapshot_path))

    return 0


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
