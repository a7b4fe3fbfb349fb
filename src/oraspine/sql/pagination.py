"""Row-range windowing for Oracle.

Two spellings are supported:

* **native** (12c and later) appends ``FETCH FIRST n ROWS ONLY`` or
  ``OFFSET o ROWS FETCH NEXT n ROWS ONLY`` to the query;
* **synthetic** (legacy servers) wraps the query and numbers rows with
  ``ROWNUM``. The numbering column is exposed under a reserved alias that
  the value codec drops from every fetched row.

Examples:
    >>> range_query("SELECT * FROM T ORDER BY ID", 0, 10)
    'SELECT * FROM T ORDER BY ID FETCH FIRST 10 ROWS ONLY'
    >>> range_query("SELECT * FROM T ORDER BY ID", 10, 10)
    'SELECT * FROM T ORDER BY ID OFFSET 10 ROWS FETCH NEXT 10 ROWS ONLY'
    >>> range_query("SELECT * FROM T", 0, 5, native=False)
    'SELECT * FROM (SELECT * FROM T) WHERE ROWNUM <= 5'
"""

from __future__ import annotations

DEFAULT_ROWNUM_ALIAS = "RWN_TO_REMOVE"


def range_query(
    query: str,
    offset: int,
    limit: int,
    *,
    alias: str = DEFAULT_ROWNUM_ALIAS,
    native: bool = True,
) -> str:
    """Restrict ``query`` to rows ``offset+1 .. offset+limit``.

    Args:
        query: Complete SELECT, including any ORDER BY
        offset: Rows to skip (negative values count as 0)
        limit: Maximum rows to return
        alias: Name of the synthetic numbering column (synthetic mode only)
        native: Use ``OFFSET/FETCH`` instead of ``ROWNUM`` wrapping

    Returns:
        The windowed query
    """
    offset = max(int(offset), 0)
    limit = max(int(limit), 0)

    if native:
        if not offset:
            return f"{query} FETCH FIRST {limit} ROWS ONLY"
        return f"{query} OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY"

    if not offset:
        return f"SELECT * FROM ({query}) WHERE ROWNUM <= {limit}"
    return (
        f"SELECT * FROM (SELECT RWN_SRC.*, ROWNUM AS {alias} FROM ({query}) RWN_SRC "
        f"WHERE ROWNUM <= {offset + limit}) WHERE {alias} > {offset}"
    )


__all__ = ["DEFAULT_ROWNUM_ALIAS", "range_query"]
