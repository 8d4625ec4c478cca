"""Data models for the recommender module."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class QueryFilterMode(Enum):
    """LogMiner query filter mode."""

    NONE = "none"
    REGEX = "regex"


@dataclass(frozen=True)
class RedoLogSizing:
    """Redo log size and group count advice."""

    size_gb: float
    groups: int


@dataclass(frozen=True)
class ArchiveRetention:
    """Archive log retention advice."""

    retention_hours: int
    disk_gb: int
    # Lower bounds the retention was taken from, in minutes
    transaction_bound_minutes: float = 0.0
    mining_lag_bound_minutes: float = 0.0
    floor_minutes: float = 120.0


@dataclass(frozen=True)
class LobCapture:
    """LOB capture decision and the reason for it."""

    enabled: bool
    reason: str


@dataclass(frozen=True)
class BatchSizing:
    """Mining window sizing and query filter mode."""

    capture_ratio: float
    batch_size_default: int
    batch_size_max: int
    query_filter_mode: QueryFilterMode


@dataclass(frozen=True)
class Recommendations:
    """Complete recommended configuration for one snapshot."""

    redo_log_size_gb: float
    redo_log_groups: int
    archive_retention_hours: int
    archive_retention_disk_gb: int
    lob_enabled: bool
    lob_reason: str
    transaction_retention_ms: int
    heartbeat_interval_ms: int
    batch_size_default: int
    batch_size_max: int
    max_retries: int
    query_filter_mode: str
    archive_log_only_mode: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def transaction_retention_minutes(self) -> float:
        """Transaction retention expressed in minutes."""
        return self.transaction_retention_ms / 60000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "redo_log_size_gb": self.redo_log_size_gb,
            "redo_log_groups": self.redo_log_groups,
            "archive_retention_hours": self.archive_retention_hours,
            "archive_retention_disk_gb": self.archive_retention_disk_gb,
            "lob_enabled": self.lob_enabled,
            "lob_reason": self.lob_reason,
            "transaction_retention_ms": self.transaction_retention_ms,
            "heartbeat_interval_ms": self.heartbeat_interval_ms,
            "batch_size_default": self.batch_size_default,
            "batch_size_max": self.batch_size_max,
            "max_retries": self.max_retries,
            "query_filter_mode": self.query_filter_mode,
            "archive_log_only_mode": self.archive_log_only_mode,
            "warnings": list(self.warnings),
        }
