"""Recommendation engine that runs every policy over a snapshot."""

import logging

from dbz_diag.collector.models import DiagnosticSnapshot
from dbz_diag.recommender.models import Recommendations
from dbz_diag.recommender.policies import (
    decide_lob_capture,
    heartbeat_interval_ms,
    max_retries,
    size_archive_retention,
    size_batches,
    size_redo_logs,
    transaction_retention_ms,
)
from dbz_diag.recommender.warning_collector import collect_warnings

logger = logging.getLogger(__name__)


def compute_recommendations(snapshot: DiagnosticSnapshot) -> Recommendations:
    """
    Derive the recommended configuration for a snapshot.

    Pure and deterministic: no I/O, no clock, and never raises on
    missing or zero data. Warnings are collected last because some of
    them compare observations with the computed retention.

    Args:
        snapshot: Diagnostic snapshot covering at least one hour

    Returns:
        Complete recommendation set
    """
    redo = size_redo_logs(
        snapshot.current_redo_group_count,
        snapshot.current_redo_size_gb,
        snapshot.switches_per_hour,
        snapshot.archive_gb_per_hour,
    )
    retention = size_archive_retention(
        snapshot.oldest_txn_minutes,
        snapshot.switches_per_hour,
        snapshot.avg_archive_file_size_gb,
        snapshot.archive_gb_per_hour,
    )
    lob = decide_lob_capture(snapshot.lob_columns, retention.retention_hours)
    batching = size_batches(snapshot.captured_table_count, snapshot.schema_table_count)
    warnings = collect_warnings(snapshot, retention, batching)

    logger.debug(
        "Retention %dh (txn bound %.1f min, mining bound %.1f min, floor %.0f min)",
        retention.retention_hours,
        retention.transaction_bound_minutes,
        retention.mining_lag_bound_minutes,
        retention.floor_minutes,
    )

    return Recommendations(
        redo_log_size_gb=redo.size_gb,
        redo_log_groups=redo.groups,
        archive_retention_hours=retention.retention_hours,
        archive_retention_disk_gb=retention.disk_gb,
        lob_enabled=lob.enabled,
        lob_reason=lob.reason,
        transaction_retention_ms=transaction_retention_ms(snapshot.oldest_txn_minutes),
        heartbeat_interval_ms=heartbeat_interval_ms(retention.retention_hours),
        batch_size_default=batching.batch_size_default,
        batch_size_max=batching.batch_size_max,
        max_retries=max_retries(snapshot.avg_archive_file_size_gb),
        query_filter_mode=batching.query_filter_mode.value,
        archive_log_only_mode=False,
        warnings=warnings,
    )
