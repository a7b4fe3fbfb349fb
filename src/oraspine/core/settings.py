"""Settings for the Oracle dialect layer.

Every constant the rewriter and codec depend on (identifier limit, inline
bind limit, sentinel spellings, pagination alias) is a validated,
environment-overridable field instead of a module-level literal, so a
deployment against a legacy 30-character Oracle or a test run with a tiny
``IN`` limit changes configuration, not code.

Manifesto:
    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** ``ORASPINE_*`` env vars and ``.env`` files
    - **Sensible defaults:** The defaults match Oracle 12.2+ behaviour

Features:
    - **OracleSettings:** dialect knobs plus logging fields
    - **ConnectionSettings:** host/port/service/credentials (``ORASPINE_DB_*``)
    - **get_settings():** cached loader, ``clear_settings_cache()`` for tests

Examples:
    >>> import os
    >>> os.environ["ORASPINE_IN_MAX_SIZE"] = "3"
    >>> clear_settings_cache()
    >>> get_settings().in_max_size
    3

Tags:
    settings, configuration, pydantic, environment

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OracleSettings(BaseSettings):
    """Dialect-layer settings.

    Fields
    ──────
    identifier_max_length : Longest name Oracle accepts unaliased (128 on 12.2+)
    max_varchar2_length   : Inline bind limit in bytes; longer strings go to BLOBS
    empty_string_sentinel : Stored in place of ``''`` (Oracle turns '' into NULL)
    long_identifier_prefix: Prefix of short aliases (``L#<id>``)
    blob_prefix           : Prefix of blob references (``B^#<id>``)
    rownum_alias          : Synthetic pagination column, stripped on fetch
    in_max_size           : Largest ``IN`` list sent as one condition
    native_pagination     : ``OFFSET/FETCH`` (12c+) instead of ROWNUM wrapping
    external              : Connected to a schema this layer does not own
    autocommit            : Commit after each statement outside a transaction
    table_prefix          : Default schema for ``{table}`` placeholders
    table_prefixes        : Per-table schema overrides
    """

    model_config = SettingsConfigDict(
        env_prefix="ORASPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Oracle limits ────────────────────────────────────────────
    identifier_max_length: int = Field(default=128, ge=1)
    max_varchar2_length: int = Field(default=4000, ge=1)

    # ── Encodings ────────────────────────────────────────────────
    empty_string_sentinel: str = "^"
    long_identifier_prefix: str = "L#"
    blob_prefix: str = "B^#"
    rownum_alias: str = "RWN_TO_REMOVE"

    # ── Rewriting ────────────────────────────────────────────────
    in_max_size: int = Field(default=999, ge=1)
    native_pagination: bool = True
    external: bool = False
    autocommit: bool = True
    table_prefix: str = ""
    table_prefixes: dict[str, str] = Field(default_factory=dict)
    long_identifier_excluded_prefixes: tuple[str, ...] = (
        "IDX_",
        "TRG_",
        "SEQ_",
        "PK_",
        "UK_",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("empty_string_sentinel")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("empty_string_sentinel must be exactly one character")
        return value


class ConnectionSettings(BaseSettings):
    """Where to connect. ``host="USETNS"`` treats ``service_name`` as a TNS alias."""

    model_config = SettingsConfigDict(
        env_prefix="ORASPINE_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = None
    host: str = "localhost"
    port: int = 1521
    service_name: str = ""
    username: str | None = None
    password: str | None = None
    pool_size: int = 2

    @property
    def use_tns(self) -> bool:
        return self.host.upper() == "USETNS"


_settings_cache: dict[str, OracleSettings | ConnectionSettings] = {}


def get_settings(*, _force_reload: bool = False) -> OracleSettings:
    """Load, validate, and cache the dialect settings."""
    if not _force_reload and "oracle" in _settings_cache:
        return _settings_cache["oracle"]  # type: ignore[return-value]
    settings = OracleSettings()
    _settings_cache["oracle"] = settings
    return settings


def get_connection_settings(*, _force_reload: bool = False) -> ConnectionSettings:
    """Load, validate, and cache the connection settings."""
    if not _force_reload and "connection" in _settings_cache:
        return _settings_cache["connection"]  # type: ignore[return-value]
    settings = ConnectionSettings()
    _settings_cache["connection"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "OracleSettings",
    "ConnectionSettings",
    "get_settings",
    "get_connection_settings",
    "clear_settings_cache",
]
