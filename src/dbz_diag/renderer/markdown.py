"""Markdown diagnostic report."""

from datetime import datetime

from dbz_diag.collector.models import DiagnosticSnapshot, MetricStatistic, round_half_up
from dbz_diag.recommender.models import Recommendations


def format_number(value: float) -> str:
    """Render whole numbers without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_stats(stats: MetricStatistic) -> list[str]:
    """Render a metric statistic as a Markdown table."""
    return [
        "| Metric | Value |",
        "|--------|-------|",
        f"| Min | {format_number(stats.minimum)} |",
        f"| Avg | {format_number(stats.average)} |",
        f"| P95 | {format_number(stats.p95)} |",
        f"| Max | {format_number(stats.maximum)} |",
    ]


def render_markdown(
    snapshot: DiagnosticSnapshot,
    recs: Recommendations,
    generated_at: datetime,
) -> str:
    """
    Render the full diagnostic report.

    Args:
        snapshot: Snapshot the recommendations were computed from
        recs: Engine output
        generated_at: Report timestamp

    Returns:
        Markdown document
    """
    lines = [
        "# Debezium Oracle CDC — Diagnostic Report",
        "",
        f"Generated: {generated_at.isoformat()}",
        f"Sampling duration: {snapshot.sampling_duration_hours:.1f} hours "
        f"({snapshot.switches_per_hour.sample_count} samples)",
        f"Schema: {snapshot.capture_schema}, Table pattern: `{snapshot.capture_table_pattern}`",
        "",
        "## Observed Metrics",
        "",
    ]

    sections = [
        ("Log Switches (per hour)", snapshot.switches_per_hour),
        ("Archive Generation (GB/hour)", snapshot.archive_gb_per_hour),
    ]
    for title, stats in sections:
        lines.extend([f"### {title}", *format_stats(stats), ""])

    lines.extend([
        f"### Average Archive File Size: {snapshot.avg_archive_file_size_gb:.2f} GB",
        "",
        "### Longest Active Transaction (minutes)",
        *format_stats(snapshot.oldest_txn_minutes),
        "",
        "### Active Transaction Count",
        *format_stats(snapshot.active_txn_count),
        "",
        "### Archive Window Available (hours)",
        *format_stats(snapshot.archive_window_hours),
    ])

    window_min = snapshot.archive_window_hours.minimum
    window_ok = window_min >= recs.archive_retention_hours
    verdict = "✓ OK" if window_ok else "⚠ TOO SHORT (ORA-00308 risk)"
    lines.extend([
        f"> Recommended retention: **{recs.archive_retention_hours}h** — "
        f"current minimum window: **{round_half_up(window_min, 1):.1f}h** — {verdict}",
        "",
        "### Archive Disk Used (GB)",
        *format_stats(snapshot.archive_disk_used_gb),
        "",
    ])

    lines.extend(_current_configuration(snapshot))
    lines.extend(_recommendations(recs))

    if recs.warnings:
        lines.extend(["## ⚠ Warnings", ""])
        lines.extend(f"- {w}" for w in recs.warnings)
        lines.append("")

    lines.extend([
        "## RMAN Script (recommended)",
        "",
        "```bash",
        "# Add disk safety check to archive cleanup script:",
        "USAGE=$(df --output=pcent /orafra | tail -1 | tr -dc '0-9')",
        'if [ "$USAGE" -gt 85 ]; then',
        "  # Emergency: shorter retention to protect database",
        "  delete noprompt archivelog all completed before 'SYSDATE-2/24';",
        "else",
        "  # Normal: recommended retention",
        f"  delete noprompt archivelog all completed before 'SYSDATE-{recs.archive_retention_hours}/24';",
        "fi",
        "```",
        "",
    ])

    if snapshot.archive_lag_target_seconds == 0 and snapshot.switches_per_hour.minimum < 2:
        lines.extend([
            "## Oracle Parameter Change",
            "",
            "```sql",
            "ALTER SYSTEM SET ARCHIVE_LAG_TARGET = 1800 SCOPE=BOTH;",
            "```",
            "",
        ])

    return "\n".join(lines)


def _current_configuration(snapshot: DiagnosticSnapshot) -> list[str]:
    capture_pct = f"{snapshot.capture_ratio * 100:.0f}" if snapshot.schema_table_count > 0 else "0"
    lines = [
        "## Current Configuration",
        "",
        "| Setting | Value |",
        "|---------|-------|",
        f"| Redo log groups | {snapshot.current_redo_group_count} |",
    ]
    if snapshot.current_redo_size_gb is not None:
        lines.append(f"| Redo log size | {snapshot.current_redo_size_gb:.1f} GB |")
    lines.extend([
        f"| Captured tables | {snapshot.captured_table_count} of "
        f"{snapshot.schema_table_count} ({capture_pct}%) |",
        f"| LOB columns in captured tables | {len(snapshot.lob_columns)} |",
        f"| archive_lag_target | {snapshot.archive_lag_target_seconds} |",
        f"| max_string_size | {snapshot.max_string_size} |",
        "",
    ])

    if snapshot.has_lob_columns:
        lines.extend([
            "### LOB Columns in Captured Tables",
            "",
            "| Table | Column | Type |",
            "|-------|--------|------|",
        ])
        lines.extend(
            f"| {c.table_name} | {c.column_name} | {c.data_type} |"
            for c in snapshot.lob_columns
        )
        lines.append("")

    return lines


def _recommendations(recs: Recommendations) -> list[str]:
    return [
        "## Recommendations",
        "",
        "### Redo Logs",
        f"- Size: **{format_number(recs.redo_log_size_gb)} GB** per group",
        f"- Groups: **{recs.redo_log_groups}**",
        "",
        "### Archive Retention",
        f"- Retention: **{recs.archive_retention_hours} hours**",
        f"- Estimated disk needed: **~{recs.archive_retention_disk_gb} GB**",
        "- RMAN delete clause: `delete noprompt archivelog all completed before "
        f"'SYSDATE-{recs.archive_retention_hours}/24';`",
        "",
        "### LOB Support",
        f"- Enabled: **{str(recs.lob_enabled).lower()}**",
        f"- Reason: {recs.lob_reason}",
        "",
        "### Debezium Tuning",
        f"- transaction.retention.ms: **{recs.transaction_retention_ms}** "
        f"({format_number(recs.transaction_retention_minutes)} min)",
        f"- heartbeat.interval.ms: **{recs.heartbeat_interval_ms}**",
        f"- batch.size.default: **{recs.batch_size_default}**",
        f"- batch.size.max: **{recs.batch_size_max}**",
        f"- errors.max.retries: **{recs.max_retries}**",
        f"- query.filter.mode: **{recs.query_filter_mode}**",
        f"- archive.log.only.mode: **{str(recs.archive_log_only_mode).lower()}**",
        "",
    ]
