"""
Reserved-word handling and identifier escaping.

Oracle refuses a handful of perfectly ordinary column names (``uid``,
``size``, ``comment``, ``date``...) unless they are quoted, and refuses
bind variables that share a name with a reserved word. This module decides
when a bare name needs quoting, renames offending bind markers to
``:db_<name>``, and provides the identifier escapers that statement
builders call when they assemble SQL by hand.

Manifesto:
    - **Quote only when needed:** A quoted Oracle identifier is
      case-sensitive, so quoting everything would break every lower-case
      name written elsewhere. Quote reserved words and mixed-case names only.
    - **Same rule both sides:** Bind markers in the text and keys of the
      argument map are renamed by the same function, so they always match.

Features:
    - ``ORACLE_RESERVED_WORDS``: the server's reserved-word list
    - ``do_escape`` / ``escape_field`` / ``escape_alias`` / ``escape_table``
    - ``escape_bind_name``: ``:uid`` → ``:db_uid``
    - ``escape_reserved``: the reserved-word rewriting stage
    - ``is_ddl``: whether a statement is DDL (anything that is not DML)

Examples:
    >>> do_escape("size")
    '"SIZE"'
    >>> do_escape("nid")
    'nid'
    >>> escape_field("n.comment")
    'n."COMMENT"'
    >>> escape_bind_name(":uid")
    'db_uid'

Guardrails:
    ❌ DON'T: Upper-case a name and quote it "just in case"
    ✅ DO: Let ``do_escape`` decide

Tags:
    sql, oracle, reserved-words, escaping, identifiers
"""

from __future__ import annotations

import re

from oraspine.sql.lexer import MARK_OPEN

ORACLE_RESERVED_WORDS: frozenset[str] = frozenset(
    """
    ACCESS ADD ALL ALTER AND ANY AS ASC AUDIT BETWEEN BY CHAR CHECK CLUSTER
    COLUMN COLUMN_VALUE COMMENT COMPRESS CONNECT CREATE CURRENT DATE DECIMAL
    DEFAULT DELETE DESC DISTINCT DROP ELSE EXCLUSIVE EXISTS FILE FLOAT FOR
    FROM GRANT GROUP HAVING IDENTIFIED IMMEDIATE IN INCREMENT INDEX INITIAL
    INSERT INTEGER INTERSECT INTO IS LEVEL LIKE LOCK LONG MAXEXTENTS MINUS
    MLSLABEL MODE MODIFY NESTED_TABLE_ID NOAUDIT NOCOMPRESS NOT NOWAIT NULL
    NUMBER OF OFFLINE ON ONLINE OPTION OR ORDER PCTFREE PRIOR PUBLIC RAW
    RENAME RESOURCE REVOKE ROW ROWID ROWNUM ROWS SELECT SESSION SET SHARE SID
    SIZE SMALLINT START SUCCESSFUL SYNONYM SYSDATE TABLE THEN TO TRIGGER UID
    UNION UNIQUE UPDATE USER VALIDATE VALUES VARCHAR VARCHAR2 VIEW WHENEVER
    WHERE WITH
    """.split()
)

# Bind variables Oracle rejects by name.
RESERVED_BIND_NAMES: tuple[str, ...] = (
    "uid", "session", "file", "access", "mode", "comment",
    "desc", "size", "start", "end", "increment",
)

# Lower-case column names quoted wherever they appear bare.
RESERVED_COLUMN_WORDS: tuple[str, ...] = (
    "uid", "session", "file", "access", "mode", "comment",
    "desc", "size", "name",
)

_DML_RE = re.compile(r"^\s*(select|insert|update|delete|merge|with)\b", re.IGNORECASE)
_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
_LONG_PLACEHOLDER_RE = re.compile(r"\{L#(\d+)\}")
_BIND_RE = re.compile(r":(" + "|".join(RESERVED_BIND_NAMES) + r")(?![\w$#])")


def _column_words(ddl: bool) -> str:
    words = list(RESERVED_COLUMN_WORDS)
    if not ddl:
        # A "date" followed by a literal is an ANSI date literal, not a column.
        words.append("date(?!\\s*" + MARK_OPEN + ")")
    return "|".join(words)


def _bracket_re(ddl: bool) -> re.Pattern[str]:
    words = [w for w in RESERVED_COLUMN_WORDS if w != "name"]
    if not ddl:
        words.append("date")
    return re.compile("<(" + "|".join(words) + ")>")


def _bare_re(ddl: bool) -> re.Pattern[str]:
    return re.compile(
        r"(?<=[(.\s,=])(" + _column_words(ddl) + r")(?=[,\s=)]|$)"
    )


_BRACKET = {ddl: _bracket_re(ddl) for ddl in (True, False)}
_BARE = {ddl: _bare_re(ddl) for ddl in (True, False)}


def is_reserved(word: str) -> bool:
    return word.upper() in ORACLE_RESERVED_WORDS


def is_ddl(query: str) -> bool:
    """Anything that is not SELECT/INSERT/UPDATE/DELETE/MERGE/WITH."""
    return not _DML_RE.match(query)


def do_escape(name: str) -> str:
    """Quote ``name`` if it carries upper-case letters or is a reserved word."""
    if re.search(r"[A-Z]", name):
        return f'"{name}"'
    if is_reserved(name):
        return f'"{name.upper()}"'
    return name


def escape_alias(alias: str) -> str:
    return do_escape(re.sub(r"[^A-Za-z0-9_]+", "", alias))


def escape_table(table: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_.]+", "", table)
    return ".".join(do_escape(part) for part in cleaned.split("."))


def escape_field(field: str) -> str:
    """Escape ``column`` or ``table.column``."""
    escaped = re.sub(r"[^A-Za-z0-9_.]+", "", field)
    escaped = re.sub(r"^[^A-Za-z0-9_]", "", escaped)
    parts = re.match(r"^([A-Za-z0-9_]+)[.]([A-Za-z0-9_.]+)", escaped)
    if parts:
        return f"{escape_table(parts.group(1))}.{escape_alias(parts.group(2))}"
    return do_escape(escaped)


def escape_bind_name(key: str) -> str:
    """Argument-map key for a bind marker, without its leading colon."""
    name = key[1:] if key.startswith(":") else key
    if name in RESERVED_BIND_NAMES:
        return f"db_{name}"
    return name


def escape_reserved(text: str) -> str:
    """
    Reserved-word stage of the rewriter.

    Works on literal-masked text:

    * ``{name}`` and ``{L#n}`` placeholders become ``"{NAME}"``/``"{L#n}"``
    * reserved bind markers become ``:db_<name>``
    * ``<uid>``-style markers and bare lower-case reserved column words
      become quoted upper-case identifiers; ``date`` only outside DDL
    """
    ddl = is_ddl(text)

    text = _PLACEHOLDER_RE.sub(lambda m: '"{' + m.group(1).upper() + '}"', text)
    text = _LONG_PLACEHOLDER_RE.sub(lambda m: '"{L#' + m.group(1) + '}"', text)
    text = _BIND_RE.sub(lambda m: ":db_" + m.group(1), text)
    text = _BRACKET[ddl].sub(lambda m: '"' + m.group(1).upper() + '"', text)
    text = _BARE[ddl].sub(lambda m: '"' + m.group(1).upper() + '"', text)
    return text


__all__ = [
    "ORACLE_RESERVED_WORDS",
    "RESERVED_BIND_NAMES",
    "RESERVED_COLUMN_WORDS",
    "is_reserved",
    "is_ddl",
    "do_escape",
    "escape_alias",
    "escape_table",
    "escape_field",
    "escape_bind_name",
    "escape_reserved",
]
