"""Expansion of array-valued bind arguments.

A caller may bind a list to a single marker::

    conn.execute("SELECT * FROM {node} WHERE nid IN (:nids)", {":nids": [1, 2, 3]})

The marker is expanded into one marker per element (``:nids_0, :nids_1,
:nids_2``) and the argument map is flattened to match. Oracle refuses an
``IN`` list longer than 1000 elements (ORA-01795), so a list longer than
``in_max_size`` is also split into a group of ``IN`` conditions joined by
``OR`` (``AND`` for ``NOT IN``), which selects exactly the same rows.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from oraspine.sql.lexer import MARK_CLOSE, MARK_OPEN

_LIST_TYPES = (list, tuple, set, frozenset)
_OPERAND_CHARS = frozenset('_$#."{}:' + MARK_OPEN + MARK_CLOSE)


def _marker_re(name: str) -> re.Pattern[str]:
    return re.compile(f":{re.escape(name)}(?![\\w$#])")


def _operand_start(text: str, end: int) -> int:
    """Start of the expression ending at ``end``: a prefixed column or a call."""
    i = end
    depth = 0
    while i > 0:
        ch = text[i - 1]
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth == 0:
                break
            depth -= 1
        elif depth == 0 and not (ch.isalnum() or ch in _OPERAND_CHARS):
            break
        i -= 1
    return i


def _split_in(text: str, name: str, names: list[str], max_size: int) -> str:
    pattern = re.compile(
        r"(?P<negated>\bNOT\s+)?\bIN\s*\(\s*:" + re.escape(name) + r"(?![\w$#])\s*\)",
        re.IGNORECASE,
    )
    chunks = [names[i:i + max_size] for i in range(0, len(names), max_size)]

    # Right to left, so earlier offsets stay valid.
    for match in reversed(list(pattern.finditer(text))):
        expr_end = match.start()
        while expr_end > 0 and text[expr_end - 1].isspace():
            expr_end -= 1
        expr_start = _operand_start(text, expr_end)
        expr = text[expr_start:expr_end]
        if not expr:
            continue
        negated = bool(match.group("negated"))
        operator = "NOT IN" if negated else "IN"
        conditions = [
            f"{expr} {operator} ({', '.join(':' + n for n in chunk)})" for chunk in chunks
        ]
        group = "(" + (" AND " if negated else " OR ").join(conditions) + ")"
        text = text[:expr_start] + group + text[match.end():]
    return text


def expand_arguments(
    text: str,
    args: Mapping[str, Any] | Any,
    *,
    in_max_size: int = 999,
) -> tuple[str, Any]:
    """
    Expand list-valued arguments into repeated markers.

    Args:
        text: Query text (literal-masked, so markers inside strings are safe)
        args: Argument map; positional sequences are returned untouched
        in_max_size: Largest ``IN`` list kept as a single condition

    Returns:
        ``(text, args)`` with list values flattened to ``name_<i>`` keys.
        Keys come back without their leading colon.
    """
    if not isinstance(args, Mapping):
        return text, args

    expanded: dict[str, Any] = {}
    for key, value in args.items():
        name = key[1:] if key.startswith(":") else key
        if not isinstance(value, _LIST_TYPES):
            expanded[name] = value
            continue

        values = sorted(value) if isinstance(value, (set, frozenset)) else list(value)
        names = [f"{name}_{i}" for i in range(len(values))]
        if len(names) > in_max_size:
            text = _split_in(text, name, names, in_max_size)
        # An empty list leaves "IN ()", which the compatibility table turns
        # into a comparison that matches nothing.
        text = _marker_re(name).sub(", ".join(":" + n for n in names), text)
        expanded.update(zip(names, values, strict=True))

    return text, expanded


__all__ = ["expand_arguments"]
