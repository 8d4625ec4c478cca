"""Tests for snapshot data models."""

import pytest

from dbz_diag.collector.models import (
    GB,
    DiagnosticSnapshot,
    LobColumn,
    MetricStatistic,
    RedoLogGroup,
    round_half_up,
)


class TestRoundHalfUp:
    """Tests for Oracle-style rounding."""

    def test_halves_round_up(self):
        """Test that .5 rounds away from zero instead of to even."""
        assert round_half_up(2.5) == 3.0
        assert round_half_up(3.5) == 4.0

    def test_decimal_places(self):
        """Test rounding to a number of decimals."""
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(4.25, 1) == 4.3
        assert round_half_up(7.0, 1) == 7.0


class TestMetricStatistic:
    """Tests for MetricStatistic aggregation."""

    def test_from_samples(self):
        """Test min, max, average and interpolated p95."""
        stats = MetricStatistic.from_samples([5, 1, 3, 2, 4])

        assert stats.minimum == 1
        assert stats.maximum == 5
        assert stats.average == 3
        assert stats.p95 == pytest.approx(4.8)
        assert stats.sample_count == 5

    def test_from_samples_with_multiplier(self):
        """Test that per-interval samples are scaled to hourly rates."""
        stats = MetricStatistic.from_samples([1, 2, 3, 4, 5], multiplier=4)

        assert stats.minimum == 4
        assert stats.maximum == 20
        assert stats.p95 == pytest.approx(19.2)

    def test_single_sample(self):
        """Test that one sample is its own min, max, avg and p95."""
        stats = MetricStatistic.from_samples([7])

        assert stats.minimum == stats.maximum == stats.average == stats.p95 == 7

    def test_rounding_stays_within_range(self):
        """Test that p95 and average never leave [min, max] after rounding."""
        stats = MetricStatistic.from_samples([1.005, 1.005])

        assert stats.minimum <= stats.p95 <= stats.maximum
        assert stats.minimum <= stats.average <= stats.maximum

    def test_no_samples(self):
        """Test that an empty sample set gives an empty statistic."""
        stats = MetricStatistic.from_samples([])

        assert stats == MetricStatistic.empty()
        assert not stats.has_samples

    def test_from_dict_missing(self):
        """Test that a missing statistic decodes as empty."""
        assert MetricStatistic.from_dict(None) == MetricStatistic.empty()
        assert MetricStatistic.from_dict({}) == MetricStatistic.empty()


class TestDiagnosticSnapshot:
    """Tests for DiagnosticSnapshot."""

    def test_defaults(self):
        """Test the defaults used when nothing was collected."""
        snapshot = DiagnosticSnapshot()

        assert snapshot.current_redo_group_count == 0
        assert snapshot.current_redo_size_gb is None
        assert snapshot.supplemental_log_data_min is None
        assert snapshot.max_string_size == "STANDARD"
        assert snapshot.capture_schema == "UNKNOWN"
        assert not snapshot.has_lob_columns

    def test_current_redo_size(self):
        """Test that redo size comes from the first group."""
        snapshot = DiagnosticSnapshot(redo_log_groups=(
            RedoLogGroup(group_number=1, size_bytes=2 * GB),
            RedoLogGroup(group_number=2, size_bytes=2 * GB),
        ))

        assert snapshot.current_redo_group_count == 2
        assert snapshot.current_redo_size_gb == 2.0

    @pytest.mark.parametrize(
        "captured,total,expected",
        [
            (25, 100, 0.25),
            (10, 10, 1.0),
            (0, 0, 1.0),
            (5, 0, 1.0),
        ],
    )
    def test_capture_ratio(self, captured, total, expected):
        """Test capture ratio, treating an empty schema as fully captured."""
        snapshot = DiagnosticSnapshot(
            captured_table_count=captured,
            schema_table_count=total,
        )
        assert snapshot.capture_ratio == expected

    def test_lob_qualified_name(self):
        """Test TABLE.COLUMN naming for LOB columns."""
        column = LobColumn(table_name="ORDERS", column_name="NOTES", data_type="CLOB")
        assert column.qualified_name == "ORDERS.NOTES"

    def test_dict_round_trip(self, make_snapshot, lob_columns):
        """Test that a saved snapshot loads back unchanged."""
        snapshot = make_snapshot(lob_columns=lob_columns, supplemental_log_data_min=None)

        assert DiagnosticSnapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_from_partial_dict(self):
        """Test that missing keys fall back to defaults."""
        snapshot = DiagnosticSnapshot.from_dict({
            "sampling_duration_hours": 6,
            "switches_per_hour": {"minimum": 1, "maximum": 9, "average": 4, "p95": 8, "sample_count": 24},
        })

        assert snapshot.sampling_duration_hours == 6.0
        assert snapshot.switches_per_hour.p95 == 8.0
        assert snapshot.archive_gb_per_hour == MetricStatistic.empty()
        assert snapshot.redo_log_groups == ()
        assert snapshot.max_string_size == "STANDARD"
