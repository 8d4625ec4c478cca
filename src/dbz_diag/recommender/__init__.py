"""Recommender module for connector and database configuration advice."""

from dbz_diag.recommender.engine import compute_recommendations
from dbz_diag.recommender.models import (
    ArchiveRetention,
    BatchSizing,
    LobCapture,
    QueryFilterMode,
    Recommendations,
    RedoLogSizing,
)
from dbz_diag.recommender.warning_collector import collect_warnings

__all__ = [
    "compute_recommendations",
    "collect_warnings",
    "ArchiveRetention",
    "BatchSizing",
    "LobCapture",
    "QueryFilterMode",
    "Recommendations",
    "RedoLogSizing",
]
