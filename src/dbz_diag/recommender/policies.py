"""Sizing policies for the LogMiner connector.

Each policy is a pure function of the slice of the snapshot it needs.
Quantities carry their unit in their name: _minutes, _hours, _ms, _gb.
"""

import math

from dbz_diag.collector.models import LobColumn, MetricStatistic, round_half_up
from dbz_diag.recommender.models import (
    ArchiveRetention,
    BatchSizing,
    LobCapture,
    QueryFilterMode,
    RedoLogSizing,
)

# Redo logs
MAX_ACCEPTABLE_SWITCHES_PER_HOUR = 6
TARGET_SWITCHES_PER_HOUR = 4
MIN_REDO_LOG_SIZE_GB = 2
MIN_REDO_LOG_GROUPS = 4
DEFAULT_REDO_LOG_SIZE_GB = 4.0

# Archive retention
ARCHIVE_WRITE_GB_PER_MINUTE = 0.5
SESSION_OVERHEAD_MINUTES = 15
SAFETY_BUFFER_MINUTES = 60
DEFAULT_SWITCH_INTERVAL_MINUTES = 30
MIN_RETENTION_MINUTES = 120
SWITCH_CYCLES_OF_LAG = 3

# Connector tuning
MIN_TRANSACTION_RETENTION_MS = 300_000
TIGHT_RETENTION_HOURS = 2
TIGHT_HEARTBEAT_MS = 10_000
DEFAULT_HEARTBEAT_MS = 30_000
SMALL_CAPTURE_RATIO = 0.3
REGEX_FILTER_RATIO = 0.5
LARGE_ARCHIVE_FILE_GB = 5

NO_LOB_REASON = "No LOB columns in captured tables."


def size_redo_logs(
    current_group_count: int,
    current_size_gb: float | None,
    switches_per_hour: MetricStatistic,
    archive_gb_per_hour: MetricStatistic,
) -> RedoLogSizing:
    """
    Recommend redo log size and group count.

    Targets 3-5 switches per hour at peak. Only excessive switching is
    corrected; fewer, larger switches keep the current size.

    Args:
        current_group_count: Configured redo groups (0 if unknown)
        current_size_gb: Configured group size, None if unknown
        switches_per_hour: Observed switch rate
        archive_gb_per_hour: Observed archive generation rate

    Returns:
        Redo log sizing advice
    """
    size_gb = DEFAULT_REDO_LOG_SIZE_GB if current_size_gb is None else current_size_gb

    if switches_per_hour.p95 > MAX_ACCEPTABLE_SWITCHES_PER_HOUR:
        peak_gb_per_hour = archive_gb_per_hour.p95 or archive_gb_per_hour.maximum
        size_gb = max(
            math.ceil(peak_gb_per_hour / TARGET_SWITCHES_PER_HOUR),
            MIN_REDO_LOG_SIZE_GB,
        )

    return RedoLogSizing(
        size_gb=round_half_up(size_gb, 1),
        groups=max(current_group_count, MIN_REDO_LOG_GROUPS),
    )


def switch_interval_p95_minutes(switches_per_hour: MetricStatistic) -> float:
    """Minutes between switches at the p95 switch rate."""
    if switches_per_hour.p95 > 0:
        return 60 / switches_per_hour.p95
    return DEFAULT_SWITCH_INTERVAL_MINUTES


def size_archive_retention(
    oldest_txn_minutes: MetricStatistic,
    switches_per_hour: MetricStatistic,
    avg_archive_file_size_gb: float,
    archive_gb_per_hour: MetricStatistic,
) -> ArchiveRetention:
    """
    Recommend how long archive logs must stay on disk.

    Retention is the largest of three lower bounds: the longest open
    transaction plus a buffer, a few switch cycles of mining lag plus
    archive write time and session overhead, and an absolute floor.

    Args:
        oldest_txn_minutes: Observed oldest active transaction age
        switches_per_hour: Observed switch rate
        avg_archive_file_size_gb: Average archive file size
        archive_gb_per_hour: Observed archive generation rate

    Returns:
        Retention advice with the bounds it was derived from
    """
    archive_write_minutes = avg_archive_file_size_gb / ARCHIVE_WRITE_GB_PER_MINUTE

    transaction_bound_minutes = oldest_txn_minutes.p95 + SAFETY_BUFFER_MINUTES
    mining_lag_bound_minutes = (
        SWITCH_CYCLES_OF_LAG * switch_interval_p95_minutes(switches_per_hour)
        + archive_write_minutes
        + SESSION_OVERHEAD_MINUTES
        + SAFETY_BUFFER_MINUTES
    )

    retention_minutes = max(
        transaction_bound_minutes,
        mining_lag_bound_minutes,
        MIN_RETENTION_MINUTES,
    )
    retention_hours = math.ceil(retention_minutes / 60)

    return ArchiveRetention(
        retention_hours=retention_hours,
        disk_gb=int(round_half_up(archive_gb_per_hour.p95 * retention_hours)),
        transaction_bound_minutes=transaction_bound_minutes,
        mining_lag_bound_minutes=mining_lag_bound_minutes,
        floor_minutes=MIN_RETENTION_MINUTES,
    )


def decide_lob_capture(
    lob_columns: tuple[LobColumn, ...],
    archive_retention_hours: int,
) -> LobCapture:
    """
    Decide on LOB capture.

    Always disabled: LOB capture pins the mining watermark further back
    and increases retention pressure. The reason tells operators when
    enabling it would be safe.
    """
    if not lob_columns:
        return LobCapture(enabled=False, reason=NO_LOB_REASON)

    return LobCapture(
        enabled=False,
        reason=(
            f"{len(lob_columns)} LOB column(s) found in captured tables. "
            "LOB capture disabled by default to prevent watermark pinning. "
            "Enable only if LOB data capture is required AND retention is "
            f">= {archive_retention_hours + 1}h."
        ),
    )


def transaction_retention_ms(oldest_txn_minutes: MetricStatistic) -> int:
    """
    Twice the p95 transaction age in milliseconds, never below 5 minutes.

    Uncapped: the connector must not abandon a live long transaction.
    """
    doubled_ms = oldest_txn_minutes.p95 * 2 * 60_000
    return max(int(round_half_up(doubled_ms)), MIN_TRANSACTION_RETENTION_MS)


def heartbeat_interval_ms(archive_retention_hours: int) -> int:
    """Heartbeat more often when archive retention is tight."""
    if archive_retention_hours <= TIGHT_RETENTION_HOURS:
        return TIGHT_HEARTBEAT_MS
    return DEFAULT_HEARTBEAT_MS


def size_batches(captured_table_count: int, schema_table_count: int) -> BatchSizing:
    """
    Size mining batches and pick the query filter mode.

    A schema with no tables is treated as fully captured.
    """
    if schema_table_count > 0:
        capture_ratio = captured_table_count / schema_table_count
    else:
        capture_ratio = 1.0

    if capture_ratio < SMALL_CAPTURE_RATIO:
        batch_default, batch_max = 5000, 10000
    else:
        batch_default, batch_max = 10000, 50000

    mode = QueryFilterMode.REGEX if capture_ratio < REGEX_FILTER_RATIO else QueryFilterMode.NONE

    return BatchSizing(
        capture_ratio=capture_ratio,
        batch_size_default=batch_default,
        batch_size_max=batch_max,
        query_filter_mode=mode,
    )


def max_retries(avg_archive_file_size_gb: float) -> int:
    """Large archive files take longer to appear, so allow more retries."""
    return 30 if avg_archive_file_size_gb > LARGE_ARCHIVE_FILE_GB else 10
