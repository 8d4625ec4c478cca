"""Oracle connection management."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import oracledb

from dbz_diag.config import Settings, get_settings

logger = logging.getLogger(__name__)

PRIVILEGE_MODES = {
    "SYSDBA": oracledb.AUTH_MODE_SYSDBA,
    "SYSOPER": oracledb.AUTH_MODE_SYSOPER,
}


class OracleDatabase:
    """
    Oracle connection manager.

    Statements share one connection inside session(), otherwise each
    opens its own. Rows come back as dictionaries keyed by upper-case
    column name.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize database access.

        Args:
            settings: Connection settings (defaults to config)

        Raises:
            SettingsNotConfiguredError: If connection settings are missing
        """
        self.settings = settings or get_settings()
        self.settings.require_connection()
        self._session: oracledb.Connection | None = None

    @property
    def user(self) -> str:
        """Schema that owns the diagnostic tables."""
        return self.settings.oracle_user

    def _connect_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "user": self.settings.oracle_user,
            "password": self.settings.oracle_password,
            "dsn": self.settings.dsn,
        }
        mode = PRIVILEGE_MODES.get(self.settings.oracle_privilege.strip().upper())
        if mode is not None:
            params["mode"] = mode
        return params

    @contextmanager
    def _open(self) -> Iterator[oracledb.Connection]:
        logger.debug("Connecting to %s as %s", self.settings.dsn, self.user)
        conn = oracledb.connect(**self._connect_params())
        conn.autocommit = True
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[oracledb.Connection]:
        """
        Hold one connection open for every statement in the block.

        Nested sessions reuse the outer connection.

        Yields:
            Open python-oracledb connection
        """
        if self._session is not None:
            yield self._session
            return
        with self._open() as conn:
            self._session = conn
            try:
                yield conn
            finally:
                self._session = None

    @contextmanager
    def connection(self) -> Iterator[oracledb.Connection]:
        """
        Get a database connection with autocommit enabled.

        Inside a session this is the session's connection, otherwise a
        new connection closed on exit.

        Yields:
            Open python-oracledb connection
        """
        if self._session is not None:
            yield self._session
            return
        with self._open() as conn:
            yield conn

    @staticmethod
    def _rows_as_dicts(cursor: oracledb.Cursor) -> None:
        columns = [d[0].upper() for d in cursor.description]
        cursor.rowfactory = lambda *values: dict(zip(columns, values))

    def execute(
        self,
        sql: str,
        params: dict | None = None,
    ) -> None:
        """
        Execute a statement.

        Args:
            sql: SQL or PL/SQL statement
            params: Bind variables
        """
        with self.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(sql, params or {})

    def try_execute(
        self,
        sql: str,
        params: dict | None = None,
    ) -> bool:
        """
        Execute a statement, reporting failure instead of raising.

        Used for privilege checks and idempotent drops where "does not exist" is
        an expected outcome.

        Returns:
            True if the statement succeeded
        """
        try:
            self.execute(sql, params)
        except oracledb.DatabaseError as e:
            logger.debug("Statement failed (%s): %s", e, sql.strip().splitlines()[0])
            return False
        return True

    def fetch_one(
        self,
        sql: str,
        params: dict | None = None,
    ) -> dict[str, Any] | None:
        """
        Fetch a single row.

        Returns:
            Row dictionary or None if no row matched
        """
        with self.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(sql, params or {})
                self._rows_as_dicts(cursor)
                return cursor.fetchone()

    def fetch_all(
        self,
        sql: str,
        params: dict | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch all rows.

        Returns:
            List of row dictionaries
        """
        with self.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(sql, params or {})
                self._rows_as_dicts(cursor)
                return cursor.fetchall()
