"""SQL dialect fragments for the backends oraspine talks to.

The rewriter produces Oracle SQL; the dialect supplies the handful of
fragments whose spelling still differs per backend: row windowing, sequence
access, empty LOB locators and the DDL of the layer's two bookkeeping
tables. ``OracleDialect`` is the production target; ``SQLiteDialect`` backs
the development adapter and the test-suite.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    ┌───────────────────────────────┐   ┌──────────────────────────────┐
    │ OracleDialect                 │   │ SQLiteDialect                │
    │ :1, :2 placeholders           │   │ ?, ? placeholders            │
    │ OFFSET/FETCH or ROWNUM        │   │ LIMIT n OFFSET o             │
    │ SEQ_X.NEXTVAL / CURRVAL       │   │ MAX(id)+1 / last_insert_rowid│
    │ EMPTY_BLOB()                  │   │ zeroblob(n)                  │
    └───────────────────────────────┘   └──────────────────────────────┘

Examples:
    >>> d = get_dialect("oracle")
    >>> d.next_id_query("BLOBS", "BLOBID", "SEQ_BLOBS")
    'SELECT SEQ_BLOBS.NEXTVAL FROM DUAL'
    >>> get_dialect("sqlite").next_id_query("BLOBS", "BLOBID", "SEQ_BLOBS")
    'SELECT COALESCE(MAX(BLOBID), 0) + 1 FROM BLOBS'

Guardrails:
    ❌ DON'T: Spell ``SEQ_X.NEXTVAL`` inline in the registry or blob store
    ✅ DO: Ask the dialect, so the SQLite backend keeps working

Tags:
    dialect, sql, oracle, sqlite, portability

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from oraspine.sql.pagination import range_query as oracle_range_query


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** or statement that is valid for
    the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'oracle'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Windowing ---------------------------------------------------------

    def range_query(
        self,
        query: str,
        offset: int,
        limit: int,
        *,
        alias: str = "RWN_TO_REMOVE",
        native: bool = True,
    ) -> str:
        """Restrict ``query`` to rows ``offset+1 .. offset+limit``."""
        ...

    # -- Sequences ---------------------------------------------------------

    def next_id_query(self, table: str, column: str, sequence: str) -> str:
        """Statement returning the next id for ``table.column``."""
        ...

    def current_value_query(self, sequence: str) -> str:
        """Statement returning the value last generated for ``sequence``."""
        ...

    # -- LOBs --------------------------------------------------------------

    def empty_blob(self, size: int) -> str:
        """Expression inserting an empty, writable LOB of ``size`` bytes."""
        ...

    # -- Bookkeeping DDL ---------------------------------------------------

    def table_exists_query(self) -> str:
        """Statement with a ``:name`` bind returning a row iff the table exists."""
        ...

    def long_identifiers_ddl(self) -> list[str]:
        """DDL for ``LONG_IDENTIFIERS (ID, IDENTIFIER)``."""
        ...

    def blobs_ddl(self) -> list[str]:
        """DDL for ``BLOBS (BLOBID, HASH, IS_TEXT, CONTENT)``."""
        ...


# =========================================================================
# Oracle
# =========================================================================


class OracleDialect:
    """Oracle dialect — ``:1, :2`` numbered placeholders, sequences, LOB locators."""

    @property
    def name(self) -> str:
        return "oracle"

    def placeholder(self, index: int) -> str:
        return f":{index + 1}"

    def placeholders(self, count: int) -> str:
        return ", ".join(f":{i + 1}" for i in range(count))

    def range_query(
        self,
        query: str,
        offset: int,
        limit: int,
        *,
        alias: str = "RWN_TO_REMOVE",
        native: bool = True,
    ) -> str:
        return oracle_range_query(query, offset, limit, alias=alias, native=native)

    def next_id_query(self, table: str, column: str, sequence: str) -> str:  # noqa: ARG002
        return f"SELECT {sequence}.NEXTVAL FROM DUAL"

    def current_value_query(self, sequence: str) -> str:
        return f"SELECT {sequence}.CURRVAL FROM DUAL"

    def empty_blob(self, size: int) -> str:  # noqa: ARG002
        return "EMPTY_BLOB()"

    def table_exists_query(self) -> str:
        return "SELECT TABLE_NAME FROM USER_TABLES WHERE TABLE_NAME = UPPER(:name)"

    def long_identifiers_ddl(self) -> list[str]:
        return [
            "CREATE TABLE LONG_IDENTIFIERS ("
            "ID NUMBER PRIMARY KEY, "
            "IDENTIFIER VARCHAR2(4000) NOT NULL UNIQUE)",
            "CREATE SEQUENCE SEQ_LONG_IDENTIFIERS",
        ]

    def blobs_ddl(self) -> list[str]:
        return [
            "CREATE TABLE BLOBS ("
            "BLOBID NUMBER PRIMARY KEY, "
            "HASH VARCHAR2(64) NOT NULL, "
            "IS_TEXT NUMBER(1) DEFAULT 0 NOT NULL, "
            "CONTENT BLOB)",
            "CREATE INDEX IDX_BLOBS_HASH ON BLOBS (HASH, IS_TEXT)",
            "CREATE SEQUENCE SEQ_BLOBS",
        ]


# =========================================================================
# SQLite (development / tests)
# =========================================================================


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders, ``LIMIT/OFFSET``, rowid-based ids."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" * count)

    def range_query(
        self,
        query: str,
        offset: int,
        limit: int,
        *,
        alias: str = "RWN_TO_REMOVE",  # noqa: ARG002
        native: bool = True,  # noqa: ARG002
    ) -> str:
        return f"{query} LIMIT {int(limit)} OFFSET {int(offset)}"

    def next_id_query(self, table: str, column: str, sequence: str) -> str:  # noqa: ARG002
        return f"SELECT COALESCE(MAX({column}), 0) + 1 FROM {table}"

    def current_value_query(self, sequence: str) -> str:  # noqa: ARG002
        return "SELECT last_insert_rowid()"

    def empty_blob(self, size: int) -> str:
        return f"zeroblob({int(size)})"

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND UPPER(name) = UPPER(:name)"

    def long_identifiers_ddl(self) -> list[str]:
        return [
            "CREATE TABLE IF NOT EXISTS LONG_IDENTIFIERS ("
            "ID INTEGER PRIMARY KEY, "
            "IDENTIFIER TEXT NOT NULL UNIQUE)",
        ]

    def blobs_ddl(self) -> list[str]:
        return [
            "CREATE TABLE IF NOT EXISTS BLOBS ("
            "BLOBID INTEGER PRIMARY KEY, "
            "HASH TEXT NOT NULL, "
            "IS_TEXT INTEGER NOT NULL DEFAULT 0, "
            "CONTENT BLOB)",
            "CREATE INDEX IF NOT EXISTS IDX_BLOBS_HASH ON BLOBS (HASH, IS_TEXT)",
        ]


# =========================================================================
# Registry / Factory
# =========================================================================

# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "oracle": OracleDialect(),
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. Supported: {sorted(_DIALECTS)}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "OracleDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
]
