"""SQLite database adapter.

The development and test backend. Besides opening the connection it
installs just enough Oracle behaviour for rewritten SQL to run unchanged:

- a one-row ``DUAL`` table
- ``BITAND``, ``REGEXP_LIKE`` and ``POWER`` SQL functions
- one attached in-memory database per table-prefix schema, so that
  ``"SITE1"."USERS"`` resolves
- constraint violations reported as error code 1, like ORA-00001
"""

from __future__ import annotations

import re
import sqlite3
from typing import Any

from oraspine.core.errors import DatabaseConnectionError
from oraspine.core.logging import get_logger
from oraspine.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

ORA_UNIQUE_CONSTRAINT = 1


def _bitand(a: int | None, b: int | None) -> int | None:
    if a is None or b is None:
        return None
    return int(a) & int(b)


def _regexp_like(value: str | None, pattern: str | None, flags: str = "") -> int | None:
    if value is None or pattern is None:
        return None
    re_flags = re.IGNORECASE if "i" in flags else 0
    return 1 if re.search(pattern, str(value), re_flags) else 0


def _power(base: float | None, exponent: float | None) -> float | None:
    if base is None or exponent is None:
        return None
    return base**exponent


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Running the rewriter end to end without an Oracle server
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        schemas: tuple[str, ...] | list[str] = (),
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            schemas=tuple(schemas),
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: Any = None
        self._schemas: set[str] = set()

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:") or "?" in path

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._install_oracle_emulation()
            self._connected = True
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

        for schema in self._config.schemas:
            self.attach_schema(schema)

    def _install_oracle_emulation(self) -> None:
        conn = self._conn
        conn.create_function("BITAND", 2, _bitand, deterministic=True)
        conn.create_function("REGEXP_LIKE", 2, _regexp_like, deterministic=True)
        conn.create_function("REGEXP_LIKE", 3, _regexp_like, deterministic=True)
        conn.create_function("POWER", 2, _power, deterministic=True)
        conn.execute("CREATE TEMP TABLE IF NOT EXISTS DUAL (DUMMY TEXT)")
        if conn.execute("SELECT COUNT(*) FROM DUAL").fetchone()[0] == 0:
            conn.execute("INSERT INTO DUAL (DUMMY) VALUES ('X')")
        conn.commit()

    def attach_schema(self, name: str, path: str = ":memory:") -> None:
        """Attach a database under ``name`` so ``"NAME"."TABLE"`` resolves."""
        key = name.upper()
        if key in self._schemas:
            return
        self.get_connection().execute(f'ATTACH DATABASE ? AS "{key}"', (path,))
        self._schemas.add(key)
        logger.debug("sqlite_schema_attached", schema=key, path=path)

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._schemas.clear()
            self._connected = False

    def get_connection(self) -> Connection:
        """Get the SQLite connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def error_code(self, exc: BaseException) -> int | None:
        if isinstance(exc, sqlite3.IntegrityError):
            return ORA_UNIQUE_CONSTRAINT
        return super().error_code(exc)

    def write_lob(
        self, table: str, column: str, key_column: str, key: Any, payload: bytes  # noqa: ARG002
    ) -> None:
        # INTEGER PRIMARY KEY columns alias the rowid that blobopen() addresses
        with self.get_connection().blobopen(table, column, int(key)) as blob:
            blob.write(payload)


__all__ = [
    "SQLiteAdapter",
]
