"""
Long-identifier registry: stable short aliases for over-length names.

Oracle rejects any identifier longer than its limit (128 bytes on 12.2+,
30 before) with ORA-00972. Portable schemas happily generate longer names
for tables, indexes and column aliases, so every such name is registered in
the ``LONG_IDENTIFIERS`` table and replaced by ``L#<id>`` before the query
reaches the server. Fetched column keys of that shape are mapped back to
the original name by the value codec.

Manifesto:
    - **Stable:** an alias is assigned once and persisted; resolving the same
      name again, in this process or after a reload, yields the same alias
    - **Longest first:** names are substituted in descending length order so
      a name never clobbers a longer one that shares its prefix
    - **Owned by the connection:** one registry per live connection, created
      on first use; nothing is shared through module globals
    - **Forgiving at provisioning time:** a missing table means "no aliases
      yet", not an error

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                   LongIdentifierRegistry                      │
        ├──────────────────────────────────────────────────────────────┤
        │  _by_name  : {"VERY_LONG_NAME...": 7}   (upper-case keys)     │
        │  _by_id    : {7: "VERY_LONG_NAME..."}                         │
        │  _pattern  : compiled alternation, longest name first         │
        │  listeners : [statement_cache.clear, ...]                     │
        ├──────────────────────────────────────────────────────────────┤
        │  resolve(name)              → "NAME" | '"SIZE"' | "L#7"       │
        │  lookup_original(7)         → "VERY_LONG_NAME..."             │
        │  escape_long_identifiers(t) → text with L#n substituted       │
        │  find_and_register(text)    → names registered from a failure │
        │  object_name(name)          → '"L#7"' (schema object naming)  │
        │  reload() / forget(name)                                      │
        └──────────────────────────────────────────────────────────────┘
                 │ run(sql) / atomic()
                 ▼
            StatementRunner (the owning connection)

Examples:
    >>> registry = LongIdentifierRegistry(runner, identifier_max_length=30)
    >>> registry.resolve("a_name_that_is_far_too_long_for_oracle")
    'L#1'
    >>> registry.escape_long_identifiers("SELECT a_name_that_is_far_too_long_for_oracle FROM T")
    'SELECT "L#1" FROM T'
    >>> registry.lookup_original(1)
    'A_NAME_THAT_IS_FAR_TOO_LONG_FOR_ORACLE'

Guardrails:
    ❌ DON'T: Share a registry between connections
    ✅ DO: Let each OracleConnection build its own on first use

    ❌ DON'T: Keep prepared statements across a registration
    ✅ DO: Subscribe the statement cache with ``add_listener``

Tags:
    oracle, identifiers, ORA-00972, aliasing, registry

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from oraspine.core.logging import get_logger
from oraspine.core.protocols import StatementRunner
from oraspine.sql.lexer import MaskedQuery
from oraspine.sql.reserved import is_reserved

logger = get_logger(__name__)

TABLE = "LONG_IDENTIFIERS"
SEQUENCE = "SEQ_LONG_IDENTIFIERS"

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
_WORD_RE = re.compile(r'"([^"]+)"|(?<![\w$#:])([A-Za-z_][\w$#]*)')


class LongIdentifierRegistry:
    """Connection-scoped map between over-length names and ``L#<id>`` aliases."""

    def __init__(
        self,
        runner: StatementRunner,
        *,
        identifier_max_length: int = 128,
        prefix: str = "L#",
        excluded_prefixes: Iterable[str] = ("IDX_", "TRG_", "SEQ_", "PK_", "UK_"),
    ):
        self._runner = runner
        self.identifier_max_length = identifier_max_length
        self.prefix = prefix
        self.excluded_prefixes = tuple(p.upper() for p in excluded_prefixes)
        self._by_name: dict[str, int] = {}
        self._by_id: dict[int, str] = {}
        self._pattern: re.Pattern[str] | None = None
        # Loaded names with a system prefix; kept out of the substitution
        # pattern until resolve() or find_and_register() asks for them.
        self._dormant: set[str] = set()
        self._loaded = False
        self._listeners: list[Callable[[], None]] = []

    # ── Listeners ────────────────────────────────────────────────────────

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` synchronously whenever the alias set changes."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()

    # ── Loading ──────────────────────────────────────────────────────────

    def ensure_schema(self) -> None:
        """Create ``LONG_IDENTIFIERS`` (and its sequence) if it does not exist."""
        dialect = self._runner.dialect
        if self._runner.run(dialect.table_exists_query(), {"name": TABLE}).fetchone():
            return
        with self._runner.atomic():
            for ddl in dialect.long_identifiers_ddl():
                self._runner.run(ddl)
        logger.info("long_identifier_table_created", table=TABLE)

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        try:
            cursor = self._runner.run(
                f"SELECT ID, IDENTIFIER FROM {TABLE} ORDER BY LENGTH(IDENTIFIER) DESC"
            )
            rows = cursor.fetchall()
        except Exception as exc:  # noqa: BLE001 - table not provisioned yet
            logger.debug("long_identifier_load_skipped", error=str(exc))
            rows = []
        for row in rows:
            short_id, name = int(row[0]), str(row[1]).upper()
            self._by_name[name] = short_id
            self._by_id[short_id] = name
            if name.startswith(self.excluded_prefixes):
                self._dormant.add(name)
        self._rebuild()

    def _activate(self, name: str) -> bool:
        if name not in self._dormant:
            return False
        self._dormant.discard(name)
        return True

    def _rebuild(self) -> None:
        names = sorted(
            (n for n in self._by_name if n not in self._dormant),
            key=len,
            reverse=True,
        )
        if not names:
            self._pattern = None
            return
        alternation = "|".join(re.escape(n) for n in names)
        self._pattern = re.compile(
            f'("?)(?<![\\w$#:])({alternation})(?![\\w$#])("?)',
            re.IGNORECASE,
        )

    def reload(self) -> None:
        """Drop the in-memory table and read it again from the database."""
        self._by_name.clear()
        self._by_id.clear()
        self._dormant.clear()
        self._pattern = None
        self._loaded = False
        self._load()
        self._notify()

    # ── Lookups ──────────────────────────────────────────────────────────

    def __len__(self) -> int:
        self._load()
        return len(self._by_id)

    def alias(self, short_id: int) -> str:
        return f"{self.prefix}{short_id}"

    def is_long(self, name: str) -> bool:
        return len(name.encode("utf-8")) > self.identifier_max_length

    def is_long_identifier(self, key: str) -> bool:
        """True for fetched column keys shaped like an alias (``L#12``, ``l#12``)."""
        head, _, tail = key.upper().partition(self.prefix.upper())
        return head == "" and tail.isdigit()

    def lookup_original(self, short_id: int) -> str:
        """Original (upper-case) name behind ``L#<short_id>``.

        Raises:
            KeyError: If the id was never registered.
        """
        self._load()
        return self._by_id[int(short_id)]

    def original_for_key(self, key: str) -> str:
        """Column key ``l#12`` → the original name, lower-cased like every fetched key."""
        short_id = int(key[len(self.prefix):])
        try:
            return self.lookup_original(short_id).lower()
        except KeyError:
            return key

    def resolve(self, name: str) -> str:
        """
        Canonical form of ``name``.

        Names within the limit come back upper-cased, and quoted if they
        are reserved words or were given in mixed case. Longer names come
        back as their alias, registering one first if needed.
        """
        if not self.is_long(name):
            upper = name.upper()
            mixed = name != name.lower() and name != name.upper()
            if is_reserved(name) or mixed:
                return f'"{upper}"'
            return upper

        self._load()
        upper = name.upper()
        short_id = self._by_name.get(upper)
        if short_id is None:
            short_id = self._register(upper)
        elif not self._activate(upper):
            return self.alias(short_id)
        self._rebuild()
        self._notify()
        return self.alias(short_id)

    def _register(self, name: str) -> int:
        dialect = self._runner.dialect
        with self._runner.atomic():
            row = self._runner.run(dialect.next_id_query(TABLE, "ID", SEQUENCE)).fetchone()
            short_id = int(row[0])
            self._runner.run(
                f"INSERT INTO {TABLE} (ID, IDENTIFIER) VALUES (:id, :identifier)",
                {"id": short_id, "identifier": name},
            )
        self._by_name[name] = short_id
        self._by_id[short_id] = name
        logger.info("long_identifier_registered", alias=self.alias(short_id), identifier=name)
        return short_id

    def forget(self, name: str) -> None:
        """Remove ``name`` from the registry and the database."""
        self._load()
        upper = name.upper()
        short_id = self._by_name.pop(upper, None)
        if short_id is None:
            return
        self._by_id.pop(short_id, None)
        self._dormant.discard(upper)
        with self._runner.atomic():
            self._runner.run(f"DELETE FROM {TABLE} WHERE ID = :id", {"id": short_id})
        self._rebuild()
        self._notify()

    # ── Text rewriting ───────────────────────────────────────────────────

    def escape_long_identifiers(self, text: str) -> str:
        """
        Long-identifier stage of the rewriter (literal-masked text).

        Every ``{placeholder}`` is resolved and upper-cased, registering
        over-length table names on the way; then every registered long name
        is replaced whole-word, case-insensitively, by its quoted alias.
        Bind markers are left alone.
        """
        self._load()

        def placeholder(match: re.Match[str]) -> str:
            name = match.group(1)
            if self.is_long(name):
                return "{" + self.resolve(name) + "}"
            return "{" + name.upper() + "}"

        text = _PLACEHOLDER_RE.sub(placeholder, text)
        if self._pattern is None:
            return text
        return self._pattern.sub(
            lambda m: f'"{self.alias(self._by_name[m.group(2).upper()])}"', text
        )

    def find_and_register(self, query: str) -> list[str]:
        """
        Register every over-length word in ``query``.

        Called after ORA-00972: the failing text is scanned, outside string
        literals and comments, for quoted or bare words beyond the limit.

        Returns:
            The names that were newly registered or brought into substitution
        """
        self._load()
        masked = MaskedQuery.lex(query)
        found: list[str] = []
        for match in _WORD_RE.finditer(masked.text):
            word = match.group(1) or match.group(2)
            if not word or not self.is_long(word):
                continue
            upper = word.upper()
            if upper not in self._by_name:
                self._register(upper)
                found.append(upper)
            elif self._activate(upper):
                found.append(upper)
        if found:
            self._rebuild()
            self._notify()
        return found

    def object_name(self, name: str, *, prefix: bool = False, quote: bool = True) -> str:
        """
        Name for a schema object (table, index, sequence, trigger).

        ``prefix=True`` returns a ``{placeholder}`` for table-prefix
        expansion; otherwise the upper-cased name, quoted unless
        ``quote=False``.
        """
        result = self.resolve(name) if self.is_long(name) else name
        if prefix:
            return "{" + result + "}"
        result = result.upper()
        return f'"{result}"' if quote else result


__all__ = ["LongIdentifierRegistry", "TABLE", "SEQUENCE"]
