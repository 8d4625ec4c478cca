"""Renderer module for report and configuration files."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from dbz_diag.collector.models import DiagnosticSnapshot
from dbz_diag.recommender.models import Recommendations
from dbz_diag.renderer.env_file import render_env
from dbz_diag.renderer.markdown import render_markdown

logger = logging.getLogger(__name__)

REPORT_FILENAME = "dbz-diag-report.md"
ENV_FILENAME = "dbz-recommended.env"


def write_report(
    snapshot: DiagnosticSnapshot,
    recs: Recommendations,
    output_dir: Path | str,
    generated_at: datetime | None = None,
) -> tuple[Path, Path]:
    """
    Write the Markdown report and the recommended .env file.

    Args:
        snapshot: Snapshot the recommendations were computed from
        recs: Engine output
        output_dir: Directory to write into (created if missing)
        generated_at: Report timestamp (defaults to now, UTC)

    Returns:
        Tuple of (report path, env path)
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / REPORT_FILENAME
    env_path = output_dir / ENV_FILENAME

    report_path.write_text(render_markdown(snapshot, recs, generated_at), encoding="utf-8")
    env_path.write_text(render_env(snapshot, recs, generated_at), encoding="utf-8")
    logger.info("Wrote %s and %s", report_path, env_path)

    return report_path, env_path


__all__ = [
    "REPORT_FILENAME",
    "ENV_FILENAME",
    "render_env",
    "render_markdown",
    "write_report",
]
