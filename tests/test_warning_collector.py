"""Tests for risk warnings."""

from conftest import stat
from dbz_diag.recommender.models import ArchiveRetention
from dbz_diag.recommender.policies import size_batches
from dbz_diag.recommender.warning_collector import (
    archive_lag_warning,
    collect_warnings,
    lob_warning,
    query_filter_warning,
    retention_risk_warning,
    supplemental_logging_warning,
)


def retention(hours: int) -> ArchiveRetention:
    return ArchiveRetention(retention_hours=hours, disk_gb=0)


class TestIndividualWarnings:
    """Tests for each warning check."""

    def test_lob_warning(self, make_snapshot, lob_columns):
        """Test that LOB columns are listed with max_string_size."""
        warning = lob_warning(make_snapshot(lob_columns=lob_columns, max_string_size="EXTENDED"))

        assert warning.startswith("LOB columns detected: ORDERS.NOTES, ORDER_DOCS.BODY.")
        assert "VARCHAR2(32767)" in warning
        assert "(max_string_size=EXTENDED)" in warning

    def test_no_lob_warning(self, sample_snapshot):
        """Test no warning without LOB columns."""
        assert lob_warning(sample_snapshot) is None

    def test_query_filter_warning(self):
        """Test the regex filter warning cites the capture percentage."""
        warning = query_filter_warning(size_batches(25, 100))

        assert warning.startswith("Captured tables are 25% of schema.")
        assert "query.filter.mode=regex" in warning
        assert "Monitor that messages still arrive" in warning

    def test_no_query_filter_warning(self):
        """Test no warning when no filter is needed."""
        assert query_filter_warning(size_batches(60, 100)) is None

    def test_archive_lag_warning(self, make_snapshot):
        """Test quiet periods without archive_lag_target."""
        snapshot = make_snapshot(
            archive_lag_target_seconds=0,
            switches_per_hour=stat(1, p95=4),
        )
        warning = archive_lag_warning(snapshot)

        assert warning.startswith("archive_lag_target is 0 and minimum switch rate is 1/hour.")
        assert "archive_lag_target=1800" in warning

    def test_archive_lag_set(self, make_snapshot):
        """Test no warning when archive_lag_target is already set."""
        snapshot = make_snapshot(
            archive_lag_target_seconds=900,
            switches_per_hour=stat(0, p95=4),
        )
        assert archive_lag_warning(snapshot) is None

    def test_archive_lag_busy_database(self, make_snapshot):
        """Test no warning when switches never drop below 2/hour."""
        snapshot = make_snapshot(
            archive_lag_target_seconds=0,
            switches_per_hour=stat(2, p95=4),
        )
        assert archive_lag_warning(snapshot) is None

    def test_supplemental_logging_disabled(self, make_snapshot):
        """Test that anything other than YES is a problem."""
        for status in ("NO", "IMPLICIT", ""):
            warning = supplemental_logging_warning(make_snapshot(supplemental_log_data_min=status))
            assert warning.startswith("Minimum supplemental logging is NOT enabled.")

    def test_supplemental_logging_not_collected(self, make_snapshot):
        """Test no warning when the fact was never collected."""
        assert supplemental_logging_warning(make_snapshot(supplemental_log_data_min=None)) is None
        assert supplemental_logging_warning(make_snapshot(supplemental_log_data_min="YES")) is None

    def test_retention_risk(self, make_snapshot):
        """Test ORA-00308 risk when archives are deleted too soon."""
        snapshot = make_snapshot(archive_window_hours=stat(3, p95=10))
        warning = retention_risk_warning(snapshot, retention(5))

        assert warning.startswith("ORA-00308 RISK: observed minimum archive window is 3h")
        assert "recommended retention is 5h" in warning

    def test_retention_risk_fractional_window(self, make_snapshot):
        """Test that the window is shown with at most one decimal."""
        snapshot = make_snapshot(archive_window_hours=stat(2.75, p95=10))
        warning = retention_risk_warning(snapshot, retention(3))

        assert "archive window is 2.8h" in warning

        snapshot = make_snapshot(archive_window_hours=stat(2.25, p95=10))
        warning = retention_risk_warning(snapshot, retention(3))

        assert "archive window is 2.3h" in warning

    def test_retention_window_sufficient(self, make_snapshot):
        """Test no warning when the window covers the retention."""
        snapshot = make_snapshot(archive_window_hours=stat(5, p95=10))
        assert retention_risk_warning(snapshot, retention(5)) is None

    def test_retention_window_not_sampled(self, make_snapshot):
        """Test no warning when the archive window was never sampled."""
        snapshot = make_snapshot(archive_window_hours=stat(0, p95=0, samples=0))
        assert retention_risk_warning(snapshot, retention(5)) is None


class TestCollectWarnings:
    """Tests for warning collection."""

    def test_healthy_database(self, sample_snapshot):
        """Test that a healthy snapshot has no warnings."""
        warnings = collect_warnings(sample_snapshot, retention(3), size_batches(10, 10))
        assert warnings == ()

    def test_order(self, make_snapshot, lob_columns):
        """Test the fixed order: LOB, filter, lag, supplemental, retention."""
        snapshot = make_snapshot(
            lob_columns=lob_columns,
            captured_table_count=25,
            schema_table_count=100,
            archive_lag_target_seconds=0,
            switches_per_hour=stat(1, p95=4),
            supplemental_log_data_min="NO",
            archive_window_hours=stat(1, p95=6),
        )
        warnings = collect_warnings(snapshot, retention(3), size_batches(25, 100))

        assert len(warnings) == 5
        assert warnings[0].startswith("LOB columns detected")
        assert warnings[1].startswith("Captured tables are 25%")
        assert warnings[2].startswith("archive_lag_target is 0")
        assert warnings[3].startswith("Minimum supplemental logging")
        assert warnings[4].startswith("ORA-00308 RISK")
