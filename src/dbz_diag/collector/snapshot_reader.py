"""Reads collected samples and static facts into a DiagnosticSnapshot."""

import json
import logging
from typing import Any

from dbz_diag.collector.database import OracleDatabase
from dbz_diag.collector.models import (
    DiagnosticSnapshot,
    LobColumn,
    MetricStatistic,
    RedoLogGroup,
)
from dbz_diag.collector.sampler import SAMPLE_TABLE, STATIC_TABLE

logger = logging.getLogger(__name__)

MIN_SAMPLING_HOURS = 1.0


class InsufficientSamplingError(Exception):
    """Raised when too little data has been collected to size anything."""

    def __init__(self, duration_hours: float, required_hours: float = MIN_SAMPLING_HOURS):
        self.duration_hours = duration_hours
        self.required_hours = required_hours
        super().__init__(
            f"Less than {required_hours:g} hour of data collected "
            f"(current duration: {duration_hours:.1f} hours). "
            "Let the sampler run longer."
        )


def require_sampling_duration(
    duration_hours: float,
    required_hours: float = MIN_SAMPLING_HOURS,
) -> None:
    """
    Reject sample sets that are too short for the sizing formulas.

    Raises:
        InsufficientSamplingError: If duration is below the requirement
    """
    if duration_hours < required_hours:
        raise InsufficientSamplingError(duration_hours, required_hours)


class SnapshotReader:
    """
    Builds a DiagnosticSnapshot from the diagnostic tables.

    Aggregation happens in the database; rate metrics sampled per
    interval are scaled to per-hour values by the hour multiplier.
    """

    def __init__(self, database: OracleDatabase, hour_multiplier: float = 4.0):
        """
        Initialize reader.

        Args:
            database: Oracle connection manager
            hour_multiplier: 60 / sampling interval in minutes
        """
        self.db = database
        self.hour_multiplier = hour_multiplier

    @property
    def owner(self) -> str:
        return self.db.user

    def read(self) -> DiagnosticSnapshot:
        """
        Read the complete snapshot.

        Returns:
            Snapshot built from all samples collected so far
        """
        duration = self.sampling_duration_hours()
        logger.info("Sampling duration: %.1f hours", duration)

        supplemental = self.static("supplemental_logging")

        return DiagnosticSnapshot(
            switches_per_hour=self.metric_stats("switches", self.hour_multiplier),
            archive_gb_per_hour=self.metric_stats("archive_gb", self.hour_multiplier),
            avg_archive_file_size_gb=self.metric_avg("avg_archive_size_gb"),
            oldest_txn_minutes=self.metric_stats("oldest_txn_mins"),
            active_txn_count=self.metric_stats("active_txn_count"),
            archive_window_hours=self.metric_stats("archive_window_hours"),
            archive_disk_used_gb=self.metric_stats("archive_disk_used_gb"),
            sampling_duration_hours=duration,
            redo_log_groups=parse_redo_log_groups(self.static("redo_log_config")),
            lob_columns=parse_lob_columns(self.static("lob_columns")),
            captured_table_count=_to_int(self.static_raw("captured_table_count")),
            schema_table_count=_to_int(self.static_raw("schema_table_count")),
            supplemental_log_data_min=parse_supplemental_logging(supplemental),
            archive_lag_target_seconds=parse_archive_lag_target(self.static("archive_lag_target")),
            max_string_size=parse_max_string_size(self.static("max_string_size")),
            capture_schema=self.static_raw("capture_schema") or "UNKNOWN",
            capture_table_pattern=self.static_raw("capture_table_pattern") or "UNKNOWN",
        )

    def sampling_duration_hours(self) -> float:
        """Hours between the first and last sample."""
        row = self.db.fetch_one(f"""
            SELECT ROUND((CAST(MAX(sample_time) AS DATE) - CAST(MIN(sample_time) AS DATE)) * 24, 2) AS HOURS
            FROM {self.owner}.{SAMPLE_TABLE}
        """)
        return float((row or {}).get("HOURS") or 0)

    def metric_stats(self, metric_name: str, multiplier: float = 1.0) -> MetricStatistic:
        """Aggregate one metric's samples."""
        row = self.db.fetch_one(
            f"""
            SELECT
              MIN(metric_value) * :mult AS MIN_V,
              MAX(metric_value) * :mult AS MAX_V,
              ROUND(AVG(metric_value) * :mult, 2) AS AVG_V,
              ROUND(PERCENTILE_CONT(0.95) WITHIN GROUP (ORDER BY metric_value) * :mult, 2) AS P95_V,
              COUNT(*) AS CNT
            FROM {self.owner}.{SAMPLE_TABLE}
            WHERE metric_name = :name
            """,
            {"name": metric_name, "mult": multiplier},
        ) or {}
        return MetricStatistic(
            minimum=float(row.get("MIN_V") or 0),
            maximum=float(row.get("MAX_V") or 0),
            average=float(row.get("AVG_V") or 0),
            p95=float(row.get("P95_V") or 0),
            sample_count=int(row.get("CNT") or 0),
        )

    def metric_avg(self, metric_name: str) -> float:
        """Average of a metric over its positive samples."""
        row = self.db.fetch_one(
            f"""
            SELECT ROUND(AVG(metric_value), 2) AS AVG_V
            FROM {self.owner}.{SAMPLE_TABLE}
            WHERE metric_name = :name AND metric_value > 0
            """,
            {"name": metric_name},
        )
        return float((row or {}).get("AVG_V") or 0)

    def static_raw(self, check_name: str) -> str | None:
        """Raw text of a static check, or None if it was not recorded."""
        row = self.db.fetch_one(
            f"SELECT check_value AS CHECK_VALUE FROM {self.owner}.{STATIC_TABLE} "
            "WHERE check_name = :name",
            {"name": check_name},
        )
        if not row:
            return None
        return row.get("CHECK_VALUE")

    def static(self, check_name: str) -> Any:
        """Static check value decoded from JSON, falling back to raw text."""
        raw = self.static_raw(check_name)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Static check %s is not JSON, using raw value", check_name)
            return raw


def parse_redo_log_groups(data: Any) -> tuple[RedoLogGroup, ...]:
    """Convert v$log rows into RedoLogGroup values."""
    if not isinstance(data, list):
        return ()
    return tuple(
        RedoLogGroup(
            group_number=_to_int(row.get("GROUP_NUM")),
            size_bytes=_to_int(row.get("BYTES")),
            members=_to_int(row.get("MEMBERS"), default=1),
            status=str(row.get("STATUS") or ""),
        )
        for row in data
        if isinstance(row, dict)
    )


def parse_lob_columns(data: Any) -> tuple[LobColumn, ...]:
    """Convert all_tab_columns rows into LobColumn values."""
    if not isinstance(data, list):
        return ()
    return tuple(
        LobColumn(
            table_name=str(row.get("TABLE_NAME") or ""),
            column_name=str(row.get("COLUMN_NAME") or ""),
            data_type=str(row.get("DATA_TYPE") or ""),
        )
        for row in data
        if isinstance(row, dict)
    )


def parse_supplemental_logging(data: Any) -> str | None:
    """
    Extract SUPPLEMENTAL_LOG_DATA_MIN.

    Returns None when the fact was not collected and an empty string
    when a row exists but carries no value.
    """
    if not isinstance(data, list) or not data:
        return None
    first = data[0] if isinstance(data[0], dict) else {}
    return str(first.get("SUPPLEMENTAL_LOG_DATA_MIN") or "")


def parse_archive_lag_target(data: Any) -> int:
    """archive_lag_target in seconds (0 = disabled or unknown)."""
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return _to_int(data[0].get("VALUE"))
    return 0


def parse_max_string_size(data: Any) -> str:
    """max_string_size parameter value, STANDARD if unknown."""
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return str(data[0].get("VALUE") or "STANDARD")
    return "STANDARD"


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
