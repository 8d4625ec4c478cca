"""Collector module for sampling Oracle and reading diagnostic snapshots."""

from dbz_diag.collector.models import (
    DiagnosticSnapshot,
    LobColumn,
    MetricStatistic,
    RedoLogGroup,
)
from dbz_diag.collector.database import OracleDatabase
from dbz_diag.collector.sampler import InsufficientPrivilegesError, SamplerInstaller
from dbz_diag.collector.snapshot_reader import (
    InsufficientSamplingError,
    SnapshotReader,
    require_sampling_duration,
)

__all__ = [
    "DiagnosticSnapshot",
    "LobColumn",
    "MetricStatistic",
    "RedoLogGroup",
    "OracleDatabase",
    "InsufficientPrivilegesError",
    "SamplerInstaller",
    "InsufficientSamplingError",
    "SnapshotReader",
    "require_sampling_duration",
]
