"""Integration tests for the command line entry points.

Each test writes a JSON snapshot, runs one command end to end and checks
the JSON written to stdout or to ``--output``.
"""

import json
import logging

import pytest
import structlog

from customer_analytics.cli import run_cli

AS_OF = "2024-06-30T00:00:00+00:00"


@pytest.fixture(autouse=True)
def restore_logging():
    """run_cli configures logging globally; undo it after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def snapshot_path(tmp_path):
    """Snapshot with two ordering customers and one who never ordered."""
    payload = {
        "customers": [
            {
                "customer_id": "C1",
                "signup_ts": "2024-01-05T00:00:00+00:00",
                "last_activity_ts": "2024-06-20T00:00:00+00:00",
                "total_orders": 3,
                "total_spent": 30_000,
            },
            {
                "customer_id": "C2",
                "signup_ts": "2024-02-10T00:00:00+00:00",
                "last_activity_ts": "2024-02-15T00:00:00+00:00",
                "total_orders": 1,
                "total_spent": 5_000,
            },
            {
                "customer_id": "C3",
                "signup_ts": "2024-05-01T00:00:00+00:00",
            },
        ],
        "orders": [
            {"order_id": "O1", "customer_id": "C1", "total_amount": 10_000,
             "created_ts": "2024-01-10T00:00:00+00:00"},
            {"order_id": "O2", "customer_id": "C1", "total_amount": 10_000,
             "created_ts": "2024-03-15T00:00:00+00:00"},
            {"order_id": "O3", "customer_id": "C1", "total_amount": 10_000,
             "created_ts": "2024-06-20T00:00:00+00:00"},
            {"order_id": "O4", "customer_id": "C2", "total_amount": 5_000,
             "created_ts": "2024-02-15T00:00:00+00:00"},
            {"order_id": "O5", "customer_id": "C2", "total_amount": 7_500,
             "created_ts": "2024-02-16T00:00:00+00:00", "status": "cancelled"},
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _run_json(capsys, *argv):
    exit_code = run_cli(list(argv))
    assert exit_code == 0
    return json.loads(capsys.readouterr().out)


class TestAnalysisCommands:
    """Test analysis commands writing JSON to stdout."""

    def test_rfm(self, snapshot_path, capsys):
        scores = _run_json(capsys, "rfm", str(snapshot_path), "--as-of", AS_OF)

        assert [s["customer_id"] for s in scores] == ["C1", "C2"]
        assert scores[0]["rfm_code"] == "533"
        assert scores[0]["segment"] == "Potential Loyalists"
        assert scores[1]["rfm_code"] == "311"

    def test_segments(self, snapshot_path, capsys):
        summaries = _run_json(capsys, "segments", str(snapshot_path), "--as-of", AS_OF)
        assert [s["segment"] for s in summaries] == ["Potential Loyalists", "New Customers"]
        assert [s["percentage"] for s in summaries] == [50.0, 50.0]

    def test_clv_ignores_cancelled_orders(self, snapshot_path, capsys):
        metrics = _run_json(capsys, "clv", str(snapshot_path), "--as-of", AS_OF)
        by_id = {m["customer_id"]: m for m in metrics}
        assert by_id["C2"]["total_revenue"] == 5_000
        assert by_id["C2"]["lifespan_days"] == 30

    def test_churn(self, snapshot_path, capsys):
        assessments = _run_json(capsys, "churn", str(snapshot_path), "--as-of", AS_OF)
        assert assessments == [
            {"customer_id": "C1", "days_since_last_order": 10,
             "churn_risk": "low", "churn_probability": 0},
            {"customer_id": "C2", "days_since_last_order": 136,
             "churn_risk": "medium", "churn_probability": 50},
        ]

    def test_churn_summary(self, snapshot_path, capsys):
        summary = _run_json(capsys, "churn-summary", str(snapshot_path), "--as-of", AS_OF)
        assert summary["total_customers"] == 2
        assert summary["expected_churners"] == 0.5

    def test_cohorts(self, snapshot_path, capsys):
        points = _run_json(
            capsys, "cohorts", str(snapshot_path), "--as-of", AS_OF, "--months-window", "6"
        )
        period_zero = {p["cohort"]: p for p in points if p["period"] == 0}
        assert set(period_zero) == {"2024-01", "2024-02", "2024-05"}
        assert all(p["retention_rate"] == 100.0 for p in period_zero.values())

    def test_naive_as_of_is_treated_as_utc(self, snapshot_path, capsys):
        assessments = _run_json(capsys, "churn", str(snapshot_path), "--as-of", "2024-06-30")
        assert assessments[0]["days_since_last_order"] == 10

    def test_snapshot_without_offsets(self, tmp_path, capsys):
        """Date-only and offset-less snapshot timestamps are read as UTC."""
        path = tmp_path / "naive.json"
        path.write_text(
            json.dumps(
                {
                    "customers": [
                        {"customer_id": "C1", "signup_ts": "2024-01-01",
                         "last_activity_ts": "2024-03-01T00:00:00",
                         "total_orders": 2, "total_spent": 500},
                    ],
                    "orders": [
                        {"order_id": "O1", "customer_id": "C1", "total_amount": 500,
                         "created_ts": "2024-03-01"},
                    ],
                }
            ),
            encoding="utf-8",
        )

        assessments = _run_json(capsys, "churn", str(path), "--as-of", "2024-06-30")
        assert assessments == [
            {"customer_id": "C1", "days_since_last_order": 121,
             "churn_risk": "medium", "churn_probability": 50},
        ]
        [metrics] = _run_json(capsys, "clv", str(path), "--as-of", AS_OF)
        assert metrics["lifespan_days"] == 60


class TestTagCommand:
    """Test the tag command and snapshot write-back."""

    def test_tag_writes_result_and_snapshot(self, snapshot_path, tmp_path):
        output = tmp_path / "out" / "tags.json"
        exit_code = run_cli(
            ["tag", str(snapshot_path), "--as-of", AS_OF, "--output", str(output)]
        )

        assert exit_code == 0
        assert json.loads(output.read_text()) == {"tagged_count": 2, "errors": []}

        snapshot = json.loads(output.with_suffix(".snapshot.json").read_text())
        types = {c["customer_id"]: c["customer_type"] for c in snapshot["customers"]}
        assert types == {"C1": "premium", "C2": "regular", "C3": None}
        assert len(snapshot["orders"]) == 5


class TestErrorHandling:
    """Test exit codes for bad input."""

    def test_missing_snapshot_returns_error(self, tmp_path):
        assert run_cli(["rfm", str(tmp_path / "missing.json")]) == 1

    def test_malformed_snapshot_returns_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"customers": [{"customer_id": "C1"}]}))
        assert run_cli(["rfm", str(path)]) == 1

    def test_invalid_window_returns_error(self, snapshot_path):
        assert run_cli(
            ["cohorts", str(snapshot_path), "--as-of", AS_OF, "--months-window", "0"]
        ) == 1

    def test_invalid_env_config_returns_error(self, snapshot_path, monkeypatch):
        monkeypatch.setenv("CUSTOMER_ANALYTICS_TAGGING_MAX_WORKERS", "0")
        assert run_cli(["rfm", str(snapshot_path), "--as-of", AS_OF]) == 1

    def test_unknown_command_exits(self, snapshot_path):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(["forecast", str(snapshot_path)])
        assert exc_info.value.code == 2
