"""Database adapter base class.

Manifesto:
    The dialect layer never talks to a driver module directly. Everything
    it needs from a backend (one live connection, statement execution,
    transaction control, native error codes and LOB writes) goes through
    this interface, so the same rewriting and retry logic runs against a
    real Oracle server and against the SQLite development backend.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``
    - ``execute()`` returning a live DB-API cursor
    - ``error_code()`` extracting the numeric ``ORA-NNNNN`` code
    - ``write_lob()`` filling a LOB column in place
    - Context-manager protocol for connection lifecycle

Tags:
    oraspine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from oraspine.core.dialect import Dialect, get_dialect
from oraspine.core.protocols import Connection, Cursor

from .types import DatabaseConfig, DatabaseType

_ORA_CODE_RE = re.compile(r"ORA-(\d{5})")


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    An adapter owns exactly one live connection. Statements are executed
    on it one at a time; transaction scoping is decided by the caller.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @property
    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception types raised by the driver for failed statements."""
        ...

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def get_connection(self) -> Connection:
        """Get the live connection, connecting first if needed."""
        ...

    @abstractmethod
    def write_lob(
        self, table: str, column: str, key_column: str, key: Any, payload: bytes
    ) -> None:
        """Write ``payload`` into the LOB at ``table.column`` of row ``key``.

        The row must already exist with an empty LOB of the right size.
        """
        ...

    def execute(self, sql: str, params: Any = None) -> Cursor:
        """Execute SQL and return the cursor."""
        cursor = self.get_connection().cursor()
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        return cursor

    def commit(self) -> None:
        self.get_connection().commit()

    def rollback(self) -> None:
        self.get_connection().rollback()

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Transaction context manager."""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def error_code(self, exc: BaseException) -> int | None:
        """Numeric Oracle error code carried by ``exc``, if any.

        The base implementation reads an ``ORA-NNNNN`` token from the message.
        """
        match = _ORA_CODE_RE.search(str(exc))
        return int(match.group(1)) if match else None

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
