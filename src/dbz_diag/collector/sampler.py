"""Installation and removal of the in-database sampling objects.

Setup creates two tables in the diagnostic user's schema, records the
one-time static facts, and schedules a DBMS_SCHEDULER job that appends
one row per metric to the sample table every sampling interval.
"""

import json
import logging
from typing import Any, Callable

from dbz_diag.collector.database import OracleDatabase

logger = logging.getLogger(__name__)

SAMPLE_TABLE = "DBZ_DIAG_SAMPLES"
STATIC_TABLE = "DBZ_DIAG_STATIC"
JOB_NAME = "DBZ_DIAG_SAMPLER"

REQUIRED_VIEWS = {
    "v$archived_log": "SELECT 1 FROM v$archived_log WHERE ROWNUM = 1",
    "v$log": "SELECT 1 FROM v$log WHERE ROWNUM = 1",
    "v$database": "SELECT 1 FROM v$database",
    "v$transaction": "SELECT 1 FROM v$transaction WHERE ROWNUM = 1",
    "v$parameter": "SELECT 1 FROM v$parameter WHERE ROWNUM = 1",
    "v$session": "SELECT 1 FROM v$session WHERE ROWNUM = 1",
}

# Static facts recorded once at setup: check name -> query
STATIC_QUERIES = {
    "redo_log_config": (
        "SELECT group# AS GROUP_NUM, bytes AS BYTES, members AS MEMBERS, status AS STATUS "
        "FROM v$log ORDER BY group#"
    ),
    "archive_destinations": (
        "SELECT dest_name, status, destination FROM v$archive_dest "
        "WHERE status = 'VALID' AND ROWNUM <= 5"
    ),
    "fra_config": "SELECT name, value FROM v$parameter WHERE name LIKE 'db_recovery%'",
    "archive_lag_target": "SELECT value FROM v$parameter WHERE name = 'archive_lag_target'",
    "supplemental_logging": (
        "SELECT supplemental_log_data_min, supplemental_log_data_pk, supplemental_log_data_all "
        "FROM v$database"
    ),
    "max_string_size": "SELECT value FROM v$parameter WHERE name = 'max_string_size'",
}

LOB_COLUMNS_SQL = """
    SELECT table_name, column_name, data_type
    FROM all_tab_columns
    WHERE owner = :schema
      AND REGEXP_LIKE(table_name, :pattern)
      AND data_type IN ('CLOB', 'BLOB', 'NCLOB')
    ORDER BY table_name, column_name
"""

CAPTURED_TABLE_COUNT_SQL = """
    SELECT COUNT(*) AS CNT FROM all_tables
    WHERE owner = :schema AND REGEXP_LIKE(table_name, :pattern)
"""

SCHEMA_TABLE_COUNT_SQL = "SELECT COUNT(*) AS CNT FROM all_tables WHERE owner = :schema"

SAMPLER_BLOCK = """
BEGIN
  -- Log switches in the last interval
  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'switches', COUNT(*)
  FROM v$archived_log
  WHERE first_time > SYSDATE - {interval}/1440
    AND resetlogs_change# = (SELECT resetlogs_change# FROM v$database);

  -- Archive GB generated in the last interval
  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'archive_gb', NVL(SUM(blocks * block_size) / 1024 / 1024 / 1024, 0)
  FROM v$archived_log
  WHERE first_time > SYSDATE - {interval}/1440
    AND resetlogs_change# = (SELECT resetlogs_change# FROM v$database);

  -- Average archive file size in GB
  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'avg_archive_size_gb', NVL(AVG(blocks * block_size) / 1024 / 1024 / 1024, 0)
  FROM v$archived_log
  WHERE first_time > SYSDATE - {interval}/1440
    AND resetlogs_change# = (SELECT resetlogs_change# FROM v$database);

  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'current_scn', current_scn FROM v$database;

  -- Oldest active transaction age in minutes
  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'oldest_txn_mins', NVL(MAX(ROUND((SYSDATE - t.start_date) * 24 * 60)), 0)
  FROM v$transaction t;

  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'active_txn_count', COUNT(*)
  FROM v$transaction;

  -- Hours spanned by archive files still on disk
  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'archive_window_hours',
         NVL(ROUND((MAX(next_time) - MIN(first_time)) * 24, 2), 0)
  FROM v$archived_log
  WHERE deleted = 'NO'
    AND resetlogs_change# = (SELECT resetlogs_change# FROM v$database);

  INSERT INTO {owner}.{samples} (metric_name, metric_value)
  SELECT 'archive_disk_used_gb',
         NVL(SUM(blocks * block_size) / 1024 / 1024 / 1024, 0)
  FROM v$archived_log
  WHERE deleted = 'NO'
    AND resetlogs_change# = (SELECT resetlogs_change# FROM v$database);

  COMMIT;
END;
"""


class InsufficientPrivilegesError(Exception):
    """Raised when the diagnostic user cannot read required v$ views."""

    def __init__(self, user: str, missing_views: list[str]):
        self.user = user
        self.missing_views = missing_views
        self.grants = [f"GRANT SELECT ON {view} TO {user};" for view in missing_views]
        super().__init__(
            f"Insufficient privileges: missing SELECT on {', '.join(missing_views)}"
        )


class SamplerInstaller:
    """
    Creates and removes the diagnostic tables and the sampler job.

    All objects live in the schema of the connecting user.
    """

    def __init__(self, database: OracleDatabase, interval_minutes: int = 15):
        """
        Initialize installer.

        Args:
            database: Oracle connection manager
            interval_minutes: Minutes between sampler job runs
        """
        self.db = database
        self.interval_minutes = interval_minutes

    @property
    def owner(self) -> str:
        return self.db.user

    def setup(
        self,
        schema: str,
        table_pattern: str,
        on_step: Callable[[str], None] | None = None,
    ) -> None:
        """
        Install everything needed to start sampling.

        Args:
            schema: Schema captured by the connector
            table_pattern: Regular expression for captured table names
            on_step: Called with each step's description before it runs

        Raises:
            InsufficientPrivilegesError: If required views are not readable
        """
        steps = [
            ("Checking privileges", self.check_privileges),
            ("Creating monitoring tables", self.create_tables),
            ("Collecting static diagnostics", lambda: self.collect_static(schema, table_pattern)),
            (f"Creating sampler job (every {self.interval_minutes} min)", self.create_sampler_job),
        ]
        for description, step in steps:
            logger.info(description)
            if on_step:
                on_step(description)
            step()

    def check_privileges(self) -> None:
        """Query each required view and raise if any is unreadable."""
        missing = [
            view for view, check_sql in REQUIRED_VIEWS.items()
            if not self.db.try_execute(check_sql)
        ]
        if missing:
            raise InsufficientPrivilegesError(self.owner, missing)

    def create_tables(self) -> None:
        """(Re)create the sample and static tables."""
        for table in (SAMPLE_TABLE, STATIC_TABLE):
            self.db.try_execute(f"DROP TABLE {self.owner}.{table} PURGE")

        self.db.execute(f"""
            CREATE TABLE {self.owner}.{SAMPLE_TABLE} (
              sample_time  TIMESTAMP DEFAULT SYSTIMESTAMP,
              metric_name  VARCHAR2(100),
              metric_value NUMBER
            )
        """)
        self.db.execute(f"""
            CREATE TABLE {self.owner}.{STATIC_TABLE} (
              check_time  TIMESTAMP DEFAULT SYSTIMESTAMP,
              check_name  VARCHAR2(100),
              check_value VARCHAR2(4000)
            )
        """)

    def collect_static(self, schema: str, table_pattern: str) -> None:
        """Record the one-time configuration facts."""
        for check_name, sql in STATIC_QUERIES.items():
            self._insert_static(check_name, _to_json(self.db.fetch_all(sql)))

        scope = {"schema": schema, "pattern": table_pattern}
        lob_columns = self.db.fetch_all(LOB_COLUMNS_SQL, scope)
        self._insert_static("lob_columns", _to_json(lob_columns))

        captured = self.db.fetch_one(CAPTURED_TABLE_COUNT_SQL, scope) or {}
        self._insert_static("captured_table_count", str(captured.get("CNT") or 0))

        total = self.db.fetch_one(SCHEMA_TABLE_COUNT_SQL, {"schema": schema}) or {}
        self._insert_static("schema_table_count", str(total.get("CNT") or 0))

        self._insert_static("capture_schema", schema)
        self._insert_static("capture_table_pattern", table_pattern)

    def create_sampler_job(self) -> None:
        """Schedule the sampler job and run it once for an initial sample."""
        self.db.try_execute(f"BEGIN DBMS_SCHEDULER.DROP_JOB('{JOB_NAME}', TRUE); END;")

        block = SAMPLER_BLOCK.format(
            owner=self.owner,
            samples=SAMPLE_TABLE,
            interval=self.interval_minutes,
        )
        self.db.execute(f"""
            BEGIN
              DBMS_SCHEDULER.CREATE_JOB (
                job_name        => '{JOB_NAME}',
                job_type        => 'PLSQL_BLOCK',
                job_action      => q'[{block}]',
                start_date      => SYSTIMESTAMP,
                repeat_interval => 'FREQ=MINUTELY; INTERVAL={self.interval_minutes}',
                enabled         => TRUE
              );
            END;
        """)

        self.db.execute(f"BEGIN DBMS_SCHEDULER.RUN_JOB('{JOB_NAME}'); END;")
        logger.info("Initial sample collected")

    def teardown(self) -> list[tuple[str, bool]]:
        """
        Remove the sampler job and both tables.

        Objects that are already gone are not an error.

        Returns:
            List of (object name, removed) pairs
        """
        results = [(
            JOB_NAME,
            self.db.try_execute(f"BEGIN DBMS_SCHEDULER.DROP_JOB('{JOB_NAME}', TRUE); END;"),
        )]
        for table in (SAMPLE_TABLE, STATIC_TABLE):
            results.append((
                table,
                self.db.try_execute(f"DROP TABLE {self.owner}.{table} PURGE"),
            ))
        return results

    def _insert_static(self, name: str, value: str) -> None:
        self.db.execute(
            f"INSERT INTO {self.owner}.{STATIC_TABLE} (check_name, check_value) "
            "VALUES (:name, :value)",
            {"name": name, "value": value},
        )


def _to_json(rows: list[dict[str, Any]]) -> str:
    return json.dumps(rows, default=str)
