"""Pytest configuration and fixtures."""

import json

import pytest

from dbz_diag.collector.models import (
    GB,
    DiagnosticSnapshot,
    LobColumn,
    MetricStatistic,
    RedoLogGroup,
)
from dbz_diag.config import get_settings

ENV_VARS = [
    "ORACLE_HOST",
    "ORACLE_PORT",
    "ORACLE_SERVICE",
    "ORACLE_USER",
    "ORACLE_PASSWORD",
    "ORACLE_PRIVILEGE",
    "CAPTURE_SCHEMA",
    "CAPTURE_TABLE_PATTERN",
    "SAMPLE_INTERVAL_MINUTES",
    "OUTPUT_DIR",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep real environment variables and .env files out of tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def oracle_env(monkeypatch):
    """Set up connection and capture environment variables."""
    monkeypatch.setenv("ORACLE_HOST", "db.example.com")
    monkeypatch.setenv("ORACLE_PORT", "1522")
    monkeypatch.setenv("ORACLE_SERVICE", "ORCLPDB1")
    monkeypatch.setenv("ORACLE_USER", "dbzdiag")
    monkeypatch.setenv("ORACLE_PASSWORD", "secret")
    monkeypatch.setenv("CAPTURE_SCHEMA", "APP")
    monkeypatch.setenv("CAPTURE_TABLE_PATTERN", "^ORDERS.*")
    get_settings.cache_clear()


def stat(minimum=0.0, average=None, p95=None, maximum=None, samples=96) -> MetricStatistic:
    """Build a MetricStatistic with sensible defaults for missing fields."""
    p95 = minimum if p95 is None else p95
    maximum = p95 if maximum is None else maximum
    average = (minimum + p95) / 2 if average is None else average
    return MetricStatistic(
        minimum=minimum,
        maximum=maximum,
        average=average,
        p95=p95,
        sample_count=samples,
    )


@pytest.fixture
def make_snapshot():
    """
    Factory for a healthy 24-hour snapshot.

    Defaults: 3 redo groups of 4 GB, p95 of 4 switches/hour and 8 GB/hour,
    1 GB archive files, 20 minute p95 transactions, a 12 hour archive
    window, every schema table captured, supplemental logging on and
    archive_lag_target set. Keyword arguments override fields.
    """
    def _make(**overrides) -> DiagnosticSnapshot:
        fields = dict(
            switches_per_hour=stat(2, 3, 4, 5),
            archive_gb_per_hour=stat(3, 5, 8, 10),
            avg_archive_file_size_gb=1.0,
            oldest_txn_minutes=stat(0, 5, 20, 30),
            active_txn_count=stat(1, 4, 9, 12),
            archive_window_hours=stat(12, 14, 16, 18),
            archive_disk_used_gb=stat(80, 100, 120, 130),
            sampling_duration_hours=24.0,
            redo_log_groups=tuple(
                RedoLogGroup(group_number=n, size_bytes=4 * GB, members=2, status="INACTIVE")
                for n in (1, 2, 3)
            ),
            lob_columns=(),
            captured_table_count=10,
            schema_table_count=10,
            supplemental_log_data_min="YES",
            archive_lag_target_seconds=1800,
            max_string_size="STANDARD",
            capture_schema="APP",
            capture_table_pattern="^ORDERS.*",
        )
        fields.update(overrides)
        return DiagnosticSnapshot(**fields)

    return _make


@pytest.fixture
def sample_snapshot(make_snapshot):
    """Healthy snapshot with no warnings."""
    return make_snapshot()


@pytest.fixture
def lob_columns():
    """Two LOB columns in captured tables."""
    return (
        LobColumn(table_name="ORDERS", column_name="NOTES", data_type="CLOB"),
        LobColumn(table_name="ORDER_DOCS", column_name="BODY", data_type="BLOB"),
    )


@pytest.fixture
def snapshot_file(sample_snapshot, tmp_path):
    """Snapshot saved as JSON for offline reports."""
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(sample_snapshot.to_dict()))
    return path


class FakeDatabase:
    """
    Stand-in for OracleDatabase that answers the snapshot reader's queries.

    Metric rows are stored unscaled and multiplied by the bound
    multiplier, the way the aggregate query does it.
    """

    user = "DBZDIAG"

    def __init__(self, duration_hours=24.0, stats=None, averages=None, statics=None):
        self.duration_hours = duration_hours
        self.stats = stats or {}
        self.averages = averages or {}
        self.statics = statics or {}
        self.queries: list[tuple[str, dict | None]] = []

    def fetch_one(self, sql, params=None):
        self.queries.append((sql, params))
        if "PERCENTILE_CONT" in sql:
            samples = self.stats.get(params["name"])
            if not samples:
                return {"MIN_V": None, "MAX_V": None, "AVG_V": None, "P95_V": None, "CNT": 0}
            scaled = MetricStatistic.from_samples(samples, params["mult"])
            return {
                "MIN_V": scaled.minimum,
                "MAX_V": scaled.maximum,
                "AVG_V": scaled.average,
                "P95_V": scaled.p95,
                "CNT": scaled.sample_count,
            }
        if "check_value" in sql:
            name = params["name"]
            if name not in self.statics:
                return None
            return {"CHECK_VALUE": self.statics[name]}
        if "AVG_V" in sql:
            return {"AVG_V": self.averages.get(params["name"])}
        if "HOURS" in sql:
            return {"HOURS": self.duration_hours}
        raise AssertionError(f"Unexpected query: {sql}")


@pytest.fixture
def fake_database():
    """Fake database populated with one day of samples and static facts."""
    return FakeDatabase(
        duration_hours=23.75,
        stats={
            # per 15-minute interval
            "switches": [0, 1, 1, 2, 2],
            "archive_gb": [0.5, 1.0, 1.5, 2.0, 4.0],
            "oldest_txn_mins": [0, 5, 10, 40],
            "active_txn_count": [1, 3, 5],
            "archive_window_hours": [6, 8, 10],
            "archive_disk_used_gb": [50, 60],
        },
        averages={"avg_archive_size_gb": 1.25},
        statics={
            "redo_log_config": json.dumps([
                {"GROUP_NUM": 1, "BYTES": 2 * GB, "MEMBERS": 2, "STATUS": "CURRENT"},
                {"GROUP_NUM": 2, "BYTES": 2 * GB, "MEMBERS": 2, "STATUS": "INACTIVE"},
            ]),
            "lob_columns": json.dumps([
                {"TABLE_NAME": "ORDERS", "COLUMN_NAME": "NOTES", "DATA_TYPE": "CLOB"},
            ]),
            "captured_table_count": "12",
            "schema_table_count": "48",
            "supplemental_logging": json.dumps([
                {
                    "SUPPLEMENTAL_LOG_DATA_MIN": "NO",
                    "SUPPLEMENTAL_LOG_DATA_PK": "NO",
                    "SUPPLEMENTAL_LOG_DATA_ALL": "NO",
                },
            ]),
            "archive_lag_target": json.dumps([{"VALUE": "0"}]),
            "max_string_size": json.dumps([{"VALUE": "EXTENDED"}]),
            "capture_schema": "APP",
            "capture_table_pattern": "^ORDERS.*",
        },
    )
