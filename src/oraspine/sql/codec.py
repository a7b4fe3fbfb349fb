"""
Value codec: the encodings applied to bound values and reversed on fetch.

Oracle stores ``''`` as NULL and refuses inline ``VARCHAR2`` binds longer
than 4000 bytes. Both would silently change what the caller wrote, so the
codec swaps such values for reserved spellings on the way in and restores
them on the way out:

==================  ==========================  ==========================
Caller value        Bound value                 Fetched back as
==================  ==========================  ==========================
``''``              ``'^'`` (sentinel)          ``''``
str/bytes > limit   ``'B^#<id>'`` (blob ref)    the original str/bytes
other               unchanged                   unchanged
==================  ==========================  ==========================

Fetched rows get two more fixes: the synthetic pagination column is
dropped, and ``L#<id>`` column keys are renamed to the original long name.

Manifesto:
    - **Lossless:** ``decode(encode(x)) == x`` for every accepted value
    - **Refuse ambiguity:** a caller value spelled like the sentinel or a
      blob reference could never round-trip, so it is rejected with
      ``SentinelCollisionError`` instead of being corrupted on fetch
    - **Deduplicated:** identical payloads share one ``BLOBS`` row,
      found by SHA-256 digest
    - **Minimal transactions:** a blob write opens its own transaction only
      when the caller has none open

Architecture:
    ::

        encode_args({"body": "x" * 5000, "title": ""})
            │
            ├── "title": ""        → "^"
            └── "body":  5000 B    → BlobStore.store() → "B^#17"
                                        │ hash → SELECT BLOBID ... WHERE HASH
                                        │ miss → INSERT ... EMPTY_BLOB()
                                        │        write through the locator
                                        ▼
                                     BLOBS(17, <sha256>, 1, <bytes>)

        decode_row({"l#3": "^", "rwn_to_remove": 11, "body": "B^#17"})
            → {"a_very_long_column_alias...": "", "body": "x" * 5000}

Examples:
    >>> codec.encode_arg("")
    '^'
    >>> codec.decode_row({"title": "^", "rwn_to_remove": 1})
    {'title': ''}

Guardrails:
    ❌ DON'T: Bind a 10 KB string directly; Oracle raises ORA-01461
    ✅ DO: Route every bound value through ``encode_args``

    ❌ DON'T: Decode rows of an external connection
    ✅ DO: Construct the codec with ``external=True`` for foreign schemas

Tags:
    oracle, codec, blobs, sentinel, empty-string, lob

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from oraspine.core.errors import SentinelCollisionError
from oraspine.core.hashing import compute_content_hash
from oraspine.core.logging import get_logger
from oraspine.core.protocols import LobReader, StatementRunner
from oraspine.sql.reserved import escape_bind_name

if TYPE_CHECKING:
    from oraspine.sql.long_identifiers import LongIdentifierRegistry

logger = get_logger(__name__)

BLOB_TABLE = "BLOBS"
BLOB_SEQUENCE = "SEQ_BLOBS"


# =============================================================================
# BLOB STORE
# =============================================================================


class BlobStore:
    """Content-addressed storage of oversized values in ``BLOBS``."""

    def __init__(self, runner: StatementRunner):
        self._runner = runner
        self._cache: dict[int, str | bytes] = {}

    def ensure_schema(self) -> None:
        """Create ``BLOBS`` (and its sequence) if it does not exist."""
        dialect = self._runner.dialect
        if self._runner.run(dialect.table_exists_query(), {"name": BLOB_TABLE}).fetchone():
            return
        with self._runner.atomic():
            for ddl in dialect.blobs_ddl():
                self._runner.run(ddl)
        logger.info("blob_table_created", table=BLOB_TABLE)

    def store(self, value: str | bytes) -> int:
        """Persist ``value`` (or find an identical copy) and return its id."""
        is_text = isinstance(value, str)
        payload = value.encode("utf-8") if is_text else bytes(value)
        digest = compute_content_hash(payload)

        existing = self._runner.run(
            f"SELECT BLOBID FROM {BLOB_TABLE} WHERE HASH = :hash AND IS_TEXT = :is_text",
            {"hash": digest, "is_text": int(is_text)},
        ).fetchone()
        if existing:
            return int(existing[0])

        dialect = self._runner.dialect
        with self._runner.atomic():
            row = self._runner.run(
                dialect.next_id_query(BLOB_TABLE, "BLOBID", BLOB_SEQUENCE)
            ).fetchone()
            blob_id = int(row[0])
            self._runner.run(
                f"INSERT INTO {BLOB_TABLE} (BLOBID, HASH, IS_TEXT, CONTENT) "
                f"VALUES (:blob_id, :hash, :is_text, {dialect.empty_blob(len(payload))})",
                {"blob_id": blob_id, "hash": digest, "is_text": int(is_text)},
            )
            self._runner.write_lob(BLOB_TABLE, "CONTENT", "BLOBID", blob_id, payload)

        self._cache[blob_id] = value
        logger.debug("blob_stored", blob_id=blob_id, size=len(payload))
        return blob_id

    def load(self, blob_id: int) -> str | bytes:
        """Payload of blob ``blob_id``, as the type it was stored with.

        Raises:
            KeyError: If no such blob exists.
        """
        if blob_id in self._cache:
            return self._cache[blob_id]
        row = self._runner.run(
            f"SELECT CONTENT, IS_TEXT FROM {BLOB_TABLE} WHERE BLOBID = :blob_id",
            {"blob_id": blob_id},
        ).fetchone()
        if row is None:
            raise KeyError(blob_id)
        content = row[0]
        if isinstance(content, LobReader):
            content = content.read()
        payload = bytes(content or b"")
        value: str | bytes = payload.decode("utf-8") if int(row[1]) else payload
        self._cache[blob_id] = value
        return value


# =============================================================================
# VALUE CODEC
# =============================================================================


class ValueCodec:
    """Encodes bound arguments and decodes fetched rows for one connection."""

    def __init__(
        self,
        blobs: BlobStore,
        registry: LongIdentifierRegistry | None = None,
        *,
        sentinel: str = "^",
        blob_prefix: str = "B^#",
        max_inline_length: int = 4000,
        rownum_alias: str = "RWN_TO_REMOVE",
        external: bool = False,
    ):
        self.blobs = blobs
        self.registry = registry
        self.sentinel = sentinel
        self.blob_prefix = blob_prefix
        self.max_inline_length = max_inline_length
        self.rownum_alias = rownum_alias.lower()
        self.external = external
        self._blob_ref = re.compile(re.escape(blob_prefix) + r"(\d+)")

    # ── Encoding ─────────────────────────────────────────────────────────

    def _check_collision(self, value: str) -> None:
        if value == self.sentinel or self._blob_ref.fullmatch(value):
            raise SentinelCollisionError(
                f"Value {value!r} collides with a reserved encoding",
                value=value,
            )

    def encode_arg(self, value: Any) -> Any:
        """Bound form of a single argument value."""
        if self.external:
            return value
        if isinstance(value, str):
            if value == "":
                return self.sentinel
            self._check_collision(value)
            if len(value.encode("utf-8")) > self.max_inline_length:
                return f"{self.blob_prefix}{self.blobs.store(value)}"
        elif isinstance(value, (bytes, bytearray)):
            if len(value) > self.max_inline_length:
                return f"{self.blob_prefix}{self.blobs.store(bytes(value))}"
        return value

    def encode_args(self, args: Mapping[str, Any] | Sequence[Any] | None) -> Any:
        """
        Bound form of an argument map or list.

        Mapping keys lose their leading colon and get the same reserved-name
        renaming as the bind markers in the query text.
        """
        if args is None:
            return None
        if isinstance(args, Mapping):
            if self.external:
                return {k.lstrip(":"): v for k, v in args.items()}
            return {escape_bind_name(k): self.encode_arg(v) for k, v in args.items()}
        return [self.encode_arg(v) for v in args]

    # ── Decoding ─────────────────────────────────────────────────────────

    def decode_value(self, value: Any) -> Any:
        if isinstance(value, LobReader):
            value = value.read()
        if isinstance(value, str):
            if value == self.sentinel:
                return ""
            match = self._blob_ref.fullmatch(value)
            if match:
                return self.blobs.load(int(match.group(1)))
            return value
        if isinstance(value, Mapping):
            return self.decode_row(value)
        if isinstance(value, list):
            return [self.decode_value(v) for v in value]
        if isinstance(value, tuple):
            return tuple(self.decode_value(v) for v in value)
        return value

    def decode_row(self, row: Any) -> Any:
        """
        Reverse every encoding in a fetched row.

        Mappings lose the pagination column and get long-identifier keys
        renamed; nested mappings, lists and tuples are decoded recursively.
        """
        if self.external:
            return row
        if not isinstance(row, Mapping):
            return self.decode_value(row)
        decoded: dict[str, Any] = {}
        for key, value in row.items():
            name = str(key)
            if name.lower() == self.rownum_alias:
                continue
            if self.registry is not None and self.registry.is_long_identifier(name):
                name = self.registry.original_for_key(name)
            decoded[name] = self.decode_value(value)
        return decoded


__all__ = ["BlobStore", "ValueCodec", "BLOB_TABLE", "BLOB_SEQUENCE"]
