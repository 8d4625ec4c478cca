"""Operator-facing risk warnings.

Runs after every policy, because some checks compare the snapshot with
a policy's output rather than with a fixed threshold.
"""

import logging

from dbz_diag.collector.models import DiagnosticSnapshot, round_half_up
from dbz_diag.recommender.models import ArchiveRetention, BatchSizing, QueryFilterMode

logger = logging.getLogger(__name__)

MIN_QUIET_SWITCHES_PER_HOUR = 2
RECOMMENDED_ARCHIVE_LAG_TARGET_SECONDS = 1800


def _hours(value: float) -> str:
    """Format hours with at most one decimal: 3 -> '3', 2.25 -> '2.3'."""
    return f"{round_half_up(value, 1):g}"


def lob_warning(snapshot: DiagnosticSnapshot) -> str | None:
    if not snapshot.has_lob_columns:
        return None
    columns = ", ".join(c.qualified_name for c in snapshot.lob_columns)
    return (
        f"LOB columns detected: {columns}. "
        "If LOB capture is needed, consider VARCHAR2(32767) conversion "
        f"(max_string_size={snapshot.max_string_size})."
    )


def query_filter_warning(batching: BatchSizing) -> str | None:
    if batching.query_filter_mode != QueryFilterMode.REGEX:
        return None
    return (
        f"Captured tables are {batching.capture_ratio * 100:.0f}% of schema. "
        "query.filter.mode=regex recommended to reduce LogMiner overhead. "
        "Monitor that messages still arrive after enabling."
    )


def archive_lag_warning(snapshot: DiagnosticSnapshot) -> str | None:
    min_switches = snapshot.switches_per_hour.minimum
    if snapshot.archive_lag_target_seconds != 0 or min_switches >= MIN_QUIET_SWITCHES_PER_HOUR:
        return None
    return (
        f"archive_lag_target is 0 and minimum switch rate is {min_switches:g}/hour. "
        "During quiet periods, long gaps without switches can stale the offset. "
        f"Set archive_lag_target={RECOMMENDED_ARCHIVE_LAG_TARGET_SECONDS} as a safety net."
    )


def supplemental_logging_warning(snapshot: DiagnosticSnapshot) -> str | None:
    status = snapshot.supplemental_log_data_min
    if status is None or status.strip().upper() == "YES":
        return None
    return (
        "Minimum supplemental logging is NOT enabled. "
        "Debezium requires at least minimal supplemental logging."
    )


def retention_risk_warning(
    snapshot: DiagnosticSnapshot,
    retention: ArchiveRetention,
) -> str | None:
    """
    Warn when archives are already deleted sooner than mining needs them.

    This is the precondition for ORA-00308 (archive file not found)
    during mining.
    """
    window = snapshot.archive_window_hours
    if not window.has_samples or window.minimum >= retention.retention_hours:
        return None
    return (
        f"ORA-00308 RISK: observed minimum archive window is {_hours(window.minimum)}h "
        f"but recommended retention is {retention.retention_hours}h. "
        "The current cleanup policy is deleting archives too soon; LogMiner will lose "
        "files it still needs. Raise RMAN retention or reduce archive generation "
        "before enabling Debezium."
    )


def collect_warnings(
    snapshot: DiagnosticSnapshot,
    retention: ArchiveRetention,
    batching: BatchSizing,
) -> tuple[str, ...]:
    """
    Evaluate every warning check in a fixed order.

    Args:
        snapshot: Diagnostic snapshot
        retention: Archive retention computed for the snapshot
        batching: Batch sizing computed for the snapshot

    Returns:
        Warnings in evaluation order
    """
    checks = [
        lob_warning(snapshot),
        query_filter_warning(batching),
        archive_lag_warning(snapshot),
        supplemental_logging_warning(snapshot),
        retention_risk_warning(snapshot, retention),
    ]
    warnings = tuple(w for w in checks if w is not None)
    logger.debug("Collected %d warning(s)", len(warnings))
    return warnings
