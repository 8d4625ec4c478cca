"""Recommended connector configuration as a .env snippet."""

from datetime import datetime

from dbz_diag.collector.models import DiagnosticSnapshot
from dbz_diag.recommender.models import QueryFilterMode, Recommendations
from dbz_diag.renderer.markdown import format_number

RULE = "# " + "=" * 76

# Settings that do not depend on the snapshot
CORE_DEFAULTS = {
    "DEBEZIUM_SOURCE_LOG_MINING_STRATEGY": "online_catalog",
    "DEBEZIUM_SOURCE_LOG_MINING_BUFFER_TYPE": "ehcache",
}
ERROR_DEFAULTS = {
    "DEBEZIUM_SOURCE_ERRORS_RETRY_DELAY_INITIAL_MS": "1000",
    "DEBEZIUM_SOURCE_ERRORS_RETRY_DELAY_MAX_MS": "30000",
}
OFFSET_FLUSH_INTERVAL_MS = 10000


def _bool(value: bool) -> str:
    return str(value).lower()


def render_env(
    snapshot: DiagnosticSnapshot,
    recs: Recommendations,
    generated_at: datetime,
) -> str:
    """
    Render recommendations as DEBEZIUM_SOURCE_* environment variables.

    Args:
        snapshot: Snapshot the recommendations were computed from
        recs: Engine output
        generated_at: Timestamp written in the header

    Returns:
        Contents of the .env file
    """
    schema = snapshot.capture_schema
    lines = [
        RULE,
        "# Debezium Oracle CDC — Recommended Configuration",
        f"# Generated: {generated_at.isoformat()}",
        f"# Based on {snapshot.sampling_duration_hours:.1f} hours of diagnostic sampling",
        f"# Schema: {schema}, Tables: {snapshot.capture_table_pattern}",
        RULE,
        "",
        "# --- Core ---",
        f"DEBEZIUM_SOURCE_ORACLE_LOB_ENABLED={_bool(recs.lob_enabled)}",
        f"DEBEZIUM_SOURCE_LOG_MINING_ARCHIVE_LOG_ONLY_MODE={_bool(recs.archive_log_only_mode)}",
        *(f"{key}={value}" for key, value in CORE_DEFAULTS.items()),
        f"DEBEZIUM_SOURCE_SCHEMA_INCLUDE_LIST={schema}",
        f"DEBEZIUM_SOURCE_TABLE_INCLUDE_LIST={schema}\\\\.{snapshot.capture_table_pattern}",
        "DEBEZIUM_SOURCE_SNAPSHOT_MODE=no_data",
        "DEBEZIUM_SOURCE_INCLUDE_SCHEMA_CHANGES=false",
        "",
        "# --- Transaction handling ---",
        f"DEBEZIUM_SOURCE_LOG_MINING_TRANSACTION_RETENTION_MS={recs.transaction_retention_ms}",
        "",
        "# --- Heartbeat ---",
        f"DEBEZIUM_SOURCE_HEARTBEAT_INTERVAL_MS={recs.heartbeat_interval_ms}",
        f'DEBEZIUM_SOURCE_HEARTBEAT_ACTION_QUERY="UPDATE {schema}.<TABLE> '
        'SET <col> = <col> WHERE ROWNUM = 1"',
        "",
        "# --- Performance ---",
        f"DEBEZIUM_SOURCE_LOG_MINING_BATCH_SIZE_DEFAULT={recs.batch_size_default}",
        f"DEBEZIUM_SOURCE_LOG_MINING_BATCH_SIZE_MAX={recs.batch_size_max}",
    ]
    if recs.query_filter_mode != QueryFilterMode.NONE.value:
        lines.append(f"DEBEZIUM_SOURCE_LOG_MINING_QUERY_FILTER_MODE={recs.query_filter_mode}")

    lines.extend([
        "",
        "# --- Error handling ---",
        f"DEBEZIUM_SOURCE_ERRORS_MAX_RETRIES={recs.max_retries}",
        *(f"{key}={value}" for key, value in ERROR_DEFAULTS.items()),
        "",
        "# --- Offset & flush ---",
        f"DEBEZIUM_SOURCE_OFFSET_FLUSH_INTERVAL_MS={OFFSET_FLUSH_INTERVAL_MS}",
        "",
        RULE,
        "# DBA actions required:",
        f"# 1. Redo logs: {recs.redo_log_groups} groups x {format_number(recs.redo_log_size_gb)}GB",
        f"# 2. Archive retention: {recs.archive_retention_hours} hours "
        f"(SYSDATE-{recs.archive_retention_hours}/24)",
        f"#    Estimated disk needed: ~{recs.archive_retention_disk_gb}GB",
    ])
    if snapshot.archive_lag_target_seconds == 0:
        lines.append("# 3. Set ARCHIVE_LAG_TARGET=1800")
    lines.append(RULE)

    return "\n".join(lines)
