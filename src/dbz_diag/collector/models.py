"""Data models for the collector module."""

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

GB = 1024 ** 3


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like Oracle ROUND(): halves go away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class MetricStatistic:
    """Summary of one sampled metric over the collection window."""

    minimum: float = 0.0
    maximum: float = 0.0
    average: float = 0.0
    p95: float = 0.0
    sample_count: int = 0

    @classmethod
    def empty(cls) -> "MetricStatistic":
        """Statistic for a metric with no samples."""
        return cls()

    @classmethod
    def from_samples(
        cls,
        values: Iterable[float],
        multiplier: float = 1.0,
    ) -> "MetricStatistic":
        """
        Aggregate raw samples the way the sample-table query does.

        The p95 uses linear interpolation between closest ranks
        (PERCENTILE_CONT semantics). Average and p95 are rounded to
        two decimals after scaling.

        Args:
            values: Raw per-interval samples
            multiplier: Scale factor applied to every sample

        Returns:
            Aggregated statistic (empty if there are no samples)
        """
        scaled = sorted(v * multiplier for v in values)
        if not scaled:
            return cls.empty()

        position = 0.95 * (len(scaled) - 1)
        lower = math.floor(position)
        upper = math.ceil(position)
        p95 = scaled[lower] + (scaled[upper] - scaled[lower]) * (position - lower)
        minimum, maximum = scaled[0], scaled[-1]

        # Rounding must not push a summary outside the observed range
        def bounded(value: float) -> float:
            return min(max(round_half_up(value, 2), minimum), maximum)

        return cls(
            minimum=minimum,
            maximum=maximum,
            average=bounded(sum(scaled) / len(scaled)),
            p95=bounded(p95),
            sample_count=len(scaled),
        )

    @property
    def has_samples(self) -> bool:
        """Whether at least one sample was collected."""
        return self.sample_count > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "minimum": self.minimum,
            "maximum": self.maximum,
            "average": self.average,
            "p95": self.p95,
            "sample_count": self.sample_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "MetricStatistic":
        """Build from a dictionary produced by to_dict()."""
        if not data:
            return cls.empty()
        return cls(
            minimum=float(data.get("minimum") or 0),
            maximum=float(data.get("maximum") or 0),
            average=float(data.get("average") or 0),
            p95=float(data.get("p95") or 0),
            sample_count=int(data.get("sample_count") or 0),
        )


@dataclass(frozen=True)
class RedoLogGroup:
    """One row of v$log."""

    group_number: int
    size_bytes: int
    members: int = 1
    status: str = ""

    @property
    def size_gb(self) -> float:
        """Group size in gigabytes."""
        return self.size_bytes / GB


@dataclass(frozen=True)
class LobColumn:
    """A CLOB/BLOB/NCLOB column in a captured table."""

    table_name: str
    column_name: str
    data_type: str = ""

    @property
    def qualified_name(self) -> str:
        """TABLE.COLUMN form used in warnings."""
        return f"{self.table_name}.{self.column_name}"


@dataclass(frozen=True)
class DiagnosticSnapshot:
    """
    Everything collected about a source database for one report run.

    Observed metrics use fixed units: switches per hour, GB per hour,
    minutes for transaction age, hours for the archive window and GB
    for disk usage.
    """

    # Observed metrics
    switches_per_hour: MetricStatistic = field(default_factory=MetricStatistic.empty)
    archive_gb_per_hour: MetricStatistic = field(default_factory=MetricStatistic.empty)
    avg_archive_file_size_gb: float = 0.0
    oldest_txn_minutes: MetricStatistic = field(default_factory=MetricStatistic.empty)
    active_txn_count: MetricStatistic = field(default_factory=MetricStatistic.empty)
    archive_window_hours: MetricStatistic = field(default_factory=MetricStatistic.empty)
    archive_disk_used_gb: MetricStatistic = field(default_factory=MetricStatistic.empty)
    sampling_duration_hours: float = 0.0

    # Static configuration
    redo_log_groups: tuple[RedoLogGroup, ...] = ()
    lob_columns: tuple[LobColumn, ...] = ()
    captured_table_count: int = 0
    schema_table_count: int = 0
    supplemental_log_data_min: str | None = None
    archive_lag_target_seconds: int = 0
    max_string_size: str = "STANDARD"
    capture_schema: str = "UNKNOWN"
    capture_table_pattern: str = "UNKNOWN"

    @property
    def current_redo_group_count(self) -> int:
        """Number of configured redo log groups."""
        return len(self.redo_log_groups)

    @property
    def current_redo_size_gb(self) -> float | None:
        """Size of the first redo log group, or None if none were collected."""
        if not self.redo_log_groups:
            return None
        return self.redo_log_groups[0].size_gb

    @property
    def capture_ratio(self) -> float:
        """Fraction of schema tables that are captured (1.0 if unknown)."""
        if self.schema_table_count <= 0:
            return 1.0
        return self.captured_table_count / self.schema_table_count

    @property
    def has_lob_columns(self) -> bool:
        """Whether any captured table has a LOB column."""
        return len(self.lob_columns) > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "switches_per_hour": self.switches_per_hour.to_dict(),
            "archive_gb_per_hour": self.archive_gb_per_hour.to_dict(),
            "avg_archive_file_size_gb": self.avg_archive_file_size_gb,
            "oldest_txn_minutes": self.oldest_txn_minutes.to_dict(),
            "active_txn_count": self.active_txn_count.to_dict(),
            "archive_window_hours": self.archive_window_hours.to_dict(),
            "archive_disk_used_gb": self.archive_disk_used_gb.to_dict(),
            "sampling_duration_hours": self.sampling_duration_hours,
            "redo_log_groups": [
                {
                    "group_number": g.group_number,
                    "size_bytes": g.size_bytes,
                    "members": g.members,
                    "status": g.status,
                }
                for g in self.redo_log_groups
            ],
            "lob_columns": [
                {
                    "table_name": c.table_name,
                    "column_name": c.column_name,
                    "data_type": c.data_type,
                }
                for c in self.lob_columns
            ],
            "captured_table_count": self.captured_table_count,
            "schema_table_count": self.schema_table_count,
            "supplemental_log_data_min": self.supplemental_log_data_min,
            "archive_lag_target_seconds": self.archive_lag_target_seconds,
            "max_string_size": self.max_string_size,
            "capture_schema": self.capture_schema,
            "capture_table_pattern": self.capture_table_pattern,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticSnapshot":
        """Build a snapshot from a dictionary produced by to_dict()."""
        return cls(
            switches_per_hour=MetricStatistic.from_dict(data.get("switches_per_hour")),
            archive_gb_per_hour=MetricStatistic.from_dict(data.get("archive_gb_per_hour")),
            avg_archive_file_size_gb=float(data.get("avg_archive_file_size_gb") or 0),
            oldest_txn_minutes=MetricStatistic.from_dict(data.get("oldest_txn_minutes")),
            active_txn_count=MetricStatistic.from_dict(data.get("active_txn_count")),
            archive_window_hours=MetricStatistic.from_dict(data.get("archive_window_hours")),
            archive_disk_used_gb=MetricStatistic.from_dict(data.get("archive_disk_used_gb")),
            sampling_duration_hours=float(data.get("sampling_duration_hours") or 0),
            redo_log_groups=tuple(
                RedoLogGroup(
                    group_number=int(g.get("group_number", 0)),
                    size_bytes=int(g.get("size_bytes", 0)),
                    members=int(g.get("members", 1)),
                    status=g.get("status", ""),
                )
                for g in data.get("redo_log_groups") or []
            ),
            lob_columns=tuple(
                LobColumn(
                    table_name=c.get("table_name", ""),
                    column_name=c.get("column_name", ""),
                    data_type=c.get("data_type", ""),
                )
                for c in data.get("lob_columns") or []
            ),
            captured_table_count=int(data.get("captured_table_count") or 0),
            schema_table_count=int(data.get("schema_table_count") or 0),
            supplemental_log_data_min=data.get("supplemental_log_data_min"),
            archive_lag_target_seconds=int(data.get("archive_lag_target_seconds") or 0),
            max_string_size=data.get("max_string_size") or "STANDARD",
            capture_schema=data.get("capture_schema") or "UNKNOWN",
            capture_table_pattern=data.get("capture_table_pattern") or "UNKNOWN",
        )
