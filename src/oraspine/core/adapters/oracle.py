"""Oracle database adapter.

Uses ``oracledb`` (python-oracledb), the modern Oracle DB driver that
supersedes ``cx_Oracle``. Statements use named binds (``:name``), which is
the form the rewriter emits.

Install the driver::

    pip install oracledb
    # or:  pip install oraspine[oracle]

This adapter is import-guarded: if ``oracledb`` is not installed a
clear :class:`~oraspine.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from oraspine.core.errors import ConfigError, DatabaseConnectionError
from oraspine.core.logging import get_logger
from oraspine.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


def _import_driver() -> Any:
    try:
        import oracledb
    except ImportError:
        raise ConfigError(
            "oracledb is required for Oracle. "
            "Install with: pip install oracledb"
        ) from None
    return oracledb


class OracleAdapter(DatabaseAdapter):
    """Oracle database adapter.

    A small ``oracledb`` pool backs the adapter; one connection is acquired
    on ``connect()`` and held until ``disconnect()`` so that transactions
    and session state (``CURRVAL``) stay on the same server session.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1521,
        service_name: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 2,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.ORACLE,
            host=host,
            port=port,
            service_name=service_name,
            username=username,
            password=password,
            pool_size=pool_size,
            options=kwargs or {},
        )
        super().__init__(config)
        self._pool: Any = None
        self._conn: Any = None

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_import_driver().DatabaseError,)

    def connect(self) -> None:
        """Connect to Oracle database."""
        oracledb = _import_driver()

        try:
            if self._config.use_tns:
                dsn = self._config.service_name
            else:
                dsn = oracledb.makedsn(
                    self._config.host,
                    self._config.port,
                    service_name=self._config.service_name,
                )
            self._pool = oracledb.create_pool(
                user=self._config.username,
                password=self._config.password,
                dsn=dsn,
                min=1,
                max=self._config.pool_size,
                increment=1,
                **self._config.options,
            )
            self._conn = self._pool.acquire()
            self._connected = True
            logger.info("oracle_connected", dsn=dsn, user=self._config.username)
        except oracledb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to Oracle: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Release the session and close the pool."""
        if self._conn is not None:
            self._pool.release(self._conn)
            self._conn = None
        if self._pool:
            self._pool.close()
            self._pool = None
        self._connected = False

    def get_connection(self) -> Connection:
        if self._conn is None:
            self.connect()
        return self._conn

    def error_code(self, exc: BaseException) -> int | None:
        """``ORA-NNNNN`` code from the driver's error object."""
        error = exc.args[0] if exc.args else None
        code = getattr(error, "code", None)
        if isinstance(code, int):
            return code
        return super().error_code(exc)

    def write_lob(
        self, table: str, column: str, key_column: str, key: Any, payload: bytes
    ) -> None:
        cursor = self.get_connection().cursor()
        cursor.execute(
            f"SELECT {column} FROM {table} WHERE {key_column} = :key FOR UPDATE",
            {"key": key},
        )
        row = cursor.fetchone()
        row[0].write(payload)


__all__ = [
    "OracleAdapter",
]
