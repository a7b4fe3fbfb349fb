"""
Dialect rewriter: portable SQL in, Oracle SQL out.

Callers write one query text for every backend::

    SELECT name FROM {users} WHERE id = :id

and the rewriter turns it into what Oracle accepts::

    SELECT "NAME" FROM "SITE1"."USERS" WHERE ID = :id

The query is lexed once (``MaskedQuery``) so that string literals and
comments are invisible to every stage, then passed through a fixed-order
pipeline. Each stage assumes the normalisation done by the ones before it.

Architecture:
    ::

        MaskedQuery.lex(query)
            │
            ├─ 1. empty literals        ''            → '^'
            ├─ 2. ANSI fixes            SELECT 1      → SELECT 1 FROM DUAL
            │                           a & b = c     → BITAND(a,b) = c
            │                           (x REGEXP y)  → REGEXP_LIKE(x,y)
            ├─ 3. long identifiers      {t}, long_col → {T}, "L#7"
            ├─ 4. reserved words        {T}, size     → "{T}", "SIZE"
            ├─ 5. compatibility table   POW(, IN ()   → POWER(, = NULL
            ├─ 6. table prefixes        "{T}"         → "SITE1"."T"
            ├─ 7. conditionals          IF(c, a, b)   → CASE WHEN c THEN a ELSE b END
            │
            └─ render: fold unquoted words to upper case, restore literals

Manifesto:
    - **Never raises:** malformed SQL is passed through and fails at the
      server, where the execution controller classifies the error
    - **Literal-safe:** nothing inside quotes or comments is ever altered,
      apart from the empty-literal sentinel
    - **Stage by stage:** each stage is a method and is tested on its own

Guardrails:
    ❌ DON'T: Run a new regex over the raw query text
    ✅ DO: Add a stage that works on ``MaskedQuery.text``

    ❌ DON'T: Lower-case keywords that collide with reserved column words
      (``ORDER BY x desc``); the bare-word stage would quote them
    ✅ DO: Write SQL keywords in upper case

Tags:
    sql, rewriter, oracle, dialect, pipeline

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from oraspine.core.logging import get_logger
from oraspine.sql.lexer import MARKER_RE, MaskedQuery
from oraspine.sql.reserved import escape_reserved

if TYPE_CHECKING:
    from oraspine.sql.long_identifiers import LongIdentifierRegistry

logger = get_logger(__name__)

# ── Stage 2: ANSI fixes ──────────────────────────────────────────────────

_SELECT_RE = re.compile(r"^\s*SELECT\s", re.IGNORECASE)
_FROM_RE = re.compile(r"\bFROM\b", re.IGNORECASE)
_BITAND_RES = [
    (re.compile(r"([^\s(]+) & (\S+) = ([^\s)]+)"), r"BITAND(\1,\2) = \3"),
    (re.compile(r"([^\s(]+) & (\S+) <> ([^\s)]+)"), r"BITAND(\1,\2) <> \3"),
]
_RELEASE_SAVEPOINT_RE = re.compile(r"^\s*RELEASE SAVEPOINT .*$", re.IGNORECASE | re.DOTALL)
_REGEXP_RE = re.compile(r"\(\s*([^()]+?)\s+REGEXP\s+([^()]+?)\s*\)", re.IGNORECASE)
_QUOTED_WORD_RE = re.compile(r'"(\w+?)"')

# ── Stage 5: compatibility table ─────────────────────────────────────────

PROCESSLIST_QUERY = (
    "SELECT DISTINCT stat.sid, sess.process, sess.status, sess.username, "
    "sess.schemaname, sql.sql_text FROM v$mystat stat, v$session sess, v$sql sql "
    "WHERE sql.sql_id(+) = sess.sql_id AND sess.status = 'ACTIVE' AND sess.type = 'USER'"
)

COMPATIBILITY_REPLACEMENTS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bIN {1,2}\(\)", re.IGNORECASE), "= NULL"),
    (re.compile(r"\(FALSE\)", re.IGNORECASE), "(1=0)"),
    (re.compile(r"\bPOW\(", re.IGNORECASE), "POWER("),
    (re.compile(r"\) AS count_alias\b", re.IGNORECASE), ") count_alias"),
    (re.compile(r"^\s*SELECT CONNECTION_ID\(\) FROM DUAL\s*$", re.IGNORECASE), "SELECT DISTINCT sid FROM v$mystat"),
    (re.compile(r"^\s*SHOW PROCESSLIST\s*$", re.IGNORECASE), PROCESSLIST_QUERY),
    (re.compile(r"^\s*SHOW TABLES\s*$", re.IGNORECASE), "SELECT * FROM user_tables"),
]

_ESCAPE_CLAUSE_RE = re.compile(r"\bESCAPE\s+(" + MARKER_RE.pattern + ")", re.IGNORECASE)

# ── Stage 6/7 and render ─────────────────────────────────────────────────

_TABLE_PLACEHOLDER_RE = re.compile(r"\{(L#\d+|\w+)\}")
_IF_RE = re.compile(r"(?<![\w$#.])IF\s*\(", re.IGNORECASE)
_FOLD_RE = re.compile(
    r'"[^"]*"'
    r"|'[^']*'"
    r"|:\w+"
    r"|" + MARKER_RE.pattern
    + r"|(?P<word>[A-Za-z_][\w$#]*)"
)


def _split_arguments(text: str, start: int) -> tuple[list[str], int] | None:
    """Split the argument list opening at ``text[start] == '('`` on top-level commas.

    Returns the arguments and the index just past the closing parenthesis,
    or None when the parentheses never balance.
    """
    depth = 0
    args: list[str] = []
    current = start + 1
    for pos in range(start, len(text)):
        char = text[pos]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                args.append(text[current:pos])
                return args, pos + 1
        elif char == "," and depth == 1:
            args.append(text[current:pos])
            current = pos + 1
    return None


class DialectRewriter:
    """Fixed-order pipeline turning portable SQL into Oracle SQL."""

    def __init__(
        self,
        registry: LongIdentifierRegistry | None = None,
        *,
        table_prefix: str = "",
        table_prefixes: Mapping[str, str] | None = None,
        external: bool = False,
        sentinel: str = "^",
    ):
        self.registry = registry
        self.table_prefix = table_prefix
        self.table_prefixes = {k.upper(): v for k, v in (table_prefixes or {}).items()}
        self.external = external
        self.sentinel = sentinel
        self._prefix_cache: dict[str, str] = {}

    # ── Public API ───────────────────────────────────────────────────────

    def rewrite(self, query: str) -> str:
        """Backend-native text for ``query``."""
        return self.rewrite_masked(MaskedQuery.lex(query))

    def rewrite_masked(self, masked: MaskedQuery) -> str:
        """Run every stage on an already-lexed query and render the result."""
        masked = masked.copy()
        self.escape_empty_literals(masked)
        text = self.escape_ansi(masked.text)
        if not self.external and self.registry is not None:
            text = self.registry.escape_long_identifiers(text)
        text = escape_reserved(text)
        masked.text = text
        self.escape_compatibility(masked)
        text = self.prefix_tables(masked.text, quoted=True)
        text = self.escape_if_function(text)
        masked.text = self.fold_case(text)
        return masked.render()

    def check_db_prefix(self, prefix: str) -> str:
        """Schema name a table prefix resolves to (aliased if over-length)."""
        if not prefix:
            return ""
        if prefix not in self._prefix_cache:
            resolved = prefix.upper()
            if not self.external and self.registry is not None and self.registry.is_long(prefix):
                resolved = self.registry.resolve(prefix)
            self._prefix_cache[prefix] = resolved
        return self._prefix_cache[prefix]

    def prefix_tables(self, text: str, *, quoted: bool = False) -> str:
        """
        Expand ``{name}`` placeholders to ``PREFIX"."NAME``.

        With ``quoted=True`` the placeholders are assumed to sit inside
        double quotes already (``"{NAME}"``); otherwise quotes are added.
        """
        quote = "" if quoted else '"'

        def expand(match: re.Match[str]) -> str:
            name = match.group(1).upper()
            prefix = self.table_prefixes.get(name, self.table_prefix)
            schema = self.check_db_prefix(prefix)
            if schema:
                return f'{quote}{schema}"."{name}{quote}'
            return f"{quote}{name}{quote}"

        return _TABLE_PLACEHOLDER_RE.sub(expand, text)

    # ── Stages ───────────────────────────────────────────────────────────

    def escape_empty_literals(self, masked: MaskedQuery) -> None:
        for index in masked.empty_literals:
            masked.replace_span(index, f"'{self.sentinel}'")

    def escape_ansi(self, text: str) -> str:
        if _SELECT_RE.match(text) and not _FROM_RE.search(text):
            text = f"{text.rstrip()} FROM DUAL"
        for pattern, replacement in _BITAND_RES:
            text = pattern.sub(replacement, text)
        text = _RELEASE_SAVEPOINT_RE.sub("begin null; end;", text)
        text = _REGEXP_RE.sub(r"REGEXP_LIKE(\1,\2)", text)
        text = text.replace('\\"', '"')
        return _QUOTED_WORD_RE.sub(lambda m: f'"{m.group(1).upper()}"', text)

    def escape_compatibility(self, masked: MaskedQuery) -> None:
        text = masked.text

        def drop_empty_concat(match: re.Match[str]) -> str:
            return "" if masked.is_empty_literal(match.group(1)) else match.group(0)

        text = re.sub(f"({MARKER_RE.pattern})\\s*\\|\\|\\s*", drop_empty_concat, text)
        text = re.sub(f"\\s*\\|\\|\\s*({MARKER_RE.pattern})", drop_empty_concat, text)

        for pattern, replacement in COMPATIBILITY_REPLACEMENTS:
            text = pattern.sub(replacement, text)

        for match in _ESCAPE_CLAUSE_RE.finditer(text):
            index = int(match.group(2))
            if masked.spans[index] == "'\\\\'":
                masked.replace_span(index, "'\\'")

        masked.text = text

    def escape_if_function(self, text: str) -> str:
        pos = 0
        while True:
            match = _IF_RE.search(text, pos)
            if not match:
                return text
            split = _split_arguments(text, match.end() - 1)
            if split is None or len(split[0]) != 3:
                pos = match.end()
                continue
            (cond, then, otherwise), end = split
            replacement = (
                f"CASE WHEN {cond.strip()} THEN {then.strip()} ELSE {otherwise.strip()} END"
            )
            text = text[:match.start()] + replacement + text[end:]
            pos = match.start()

    def fold_case(self, text: str) -> str:
        """Upper-case unquoted words, leaving binds, quoted names and literals alone."""

        def fold(match: re.Match[str]) -> str:
            word = match.group("word")
            return word.upper() if word is not None else match.group(0)

        return _FOLD_RE.sub(fold, text)


__all__ = ["DialectRewriter", "COMPATIBILITY_REPLACEMENTS", "PROCESSLIST_QUERY"]
