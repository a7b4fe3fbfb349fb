"""
Canonical protocol definitions for oraspine.

The registry, the blob store and the statement wrapper each need a sliver
of the connection: run a bit of SQL, open a short transaction, or decode a
fetched row. They get that sliver through the protocols defined here
rather than holding a back-reference to ``OracleConnection`` itself.

Architecture:
    ::

        protocols.py
        ├── Connection       — DB-API connection (sqlite3, oracledb)
        ├── Cursor           — DB-API cursor
        ├── StatementRunner  — raw SQL + minimal transaction (registry, blobs)
        └── RowDecoder       — decode_row() capability handed to Statement

Guardrails:
    ❌ DON'T: Pass OracleConnection into Statement so it can decode rows
    ✅ DO: Pass the RowDecoder (the ValueCodec) it actually needs

Tags:
    protocol, connection, cursor, database, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """DB-API 2.0 cursor, the subset oraspine relies on."""

    description: Any
    rowcount: int

    def execute(self, sql: str, params: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list[Any]: ...

    def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    """
    DB-API 2.0 connection.

    ``sqlite3.Connection`` and ``oracledb.Connection`` both satisfy it.
    """

    def cursor(self) -> Cursor: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class StatementRunner(Protocol):
    """
    Runs backend-native SQL without rewriting, encoding or retries.

    Used for the layer's own bookkeeping tables. ``atomic()`` opens a
    transaction only when none is in progress, and commits it on exit.
    """

    @property
    def dialect(self) -> Any: ...

    def run(self, sql: str, params: Any = None) -> Cursor: ...

    def atomic(self) -> AbstractContextManager[None]: ...

    def write_lob(
        self, table: str, column: str, key_column: str, key: Any, payload: bytes
    ) -> None: ...


@runtime_checkable
class RowDecoder(Protocol):
    """Reverses the encodings applied on the way in."""

    def decode_row(self, row: Any) -> Any: ...


@runtime_checkable
class LobReader(Protocol):
    """Driver LOB handle (``oracledb.LOB``)."""

    def read(self, offset: int = ..., amount: int = ...) -> Any: ...


__all__ = [
    "Cursor",
    "Connection",
    "StatementRunner",
    "RowDecoder",
    "LobReader",
]
