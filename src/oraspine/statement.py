"""Statement handles returned by ``OracleConnection``.

``PreparedStatement`` is the cached result of rewriting one query: the
caller's text and the backend-native text. ``Statement`` wraps a live
cursor and decodes every row it hands out through a ``RowDecoder``, so
callers never see sentinels, blob references, ``L#`` keys or the
pagination column.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from oraspine.core.protocols import Cursor, RowDecoder


@dataclass(frozen=True)
class PreparedStatement:
    """A rewritten query, cached by the digest of its final text."""

    query: str
    final_text: str
    cache_key: str

    def __str__(self) -> str:
        return self.final_text


class Statement:
    """
    Live result of an executed query.

    Rows come back as dicts keyed by lower-case column name, already decoded.

    Example:
        stmt = conn.execute("SELECT nid, title FROM {node}")
        for row in stmt:
            print(row["nid"], row["title"])
    """

    def __init__(
        self,
        cursor: Cursor,
        decoder: RowDecoder,
        *,
        query: str,
        prepared: str,
    ):
        self._cursor = cursor
        self._decoder = decoder
        self.query_string = query
        self.prepared_string = prepared
        self._columns: list[str] | None = None

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def columns(self) -> list[str]:
        if self._columns is None:
            description = self._cursor.description or []
            self._columns = [str(desc[0]).lower() for desc in description]
        return self._columns

    def _decode(self, row: Any) -> dict[str, Any]:
        return self._decoder.decode_row(dict(zip(self.columns, row, strict=False)))

    def fetchone(self) -> dict[str, Any] | None:
        if self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        return None if row is None else self._decode(row)

    def fetchall(self) -> list[dict[str, Any]]:
        if self._cursor.description is None:
            return []
        return [self._decode(row) for row in self._cursor.fetchall()]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while (row := self.fetchone()) is not None:
            yield row

    # ── Convenience fetchers ─────────────────────────────────────────────

    def fetch_field(self, index: int = 0) -> Any:
        """Column ``index`` of the next row, or None when exhausted."""
        row = self.fetchone()
        if row is None:
            return None
        return list(row.values())[index]

    def fetch_col(self, index: int = 0) -> list[Any]:
        """Column ``index`` of every remaining row."""
        return [list(row.values())[index] for row in self.fetchall()]

    def fetch_all_keyed(self, key_index: int = 0, value_index: int = 1) -> dict[Any, Any]:
        """``{row[key_index]: row[value_index]}`` for every remaining row."""
        result = {}
        for row in self.fetchall():
            values = list(row.values())
            result[values[key_index]] = values[value_index]
        return result

    def fetch_all_assoc(self, key: str) -> dict[Any, dict[str, Any]]:
        """Every remaining row, indexed by the value of column ``key``."""
        return {row[key.lower()]: row for row in self.fetchall()}

    def close(self) -> None:
        self._cursor.close()


__all__ = ["PreparedStatement", "Statement"]
