"""Database adapters: one interface over Oracle and its SQLite stand-in.

Manifesto:
    The dialect layer is written against Oracle, but most of its behaviour
    can be exercised without an Oracle server. ``SQLiteAdapter`` emulates
    the handful of Oracle features the rewritten SQL depends on, so the
    whole pipeline runs in tests against an in-memory database.

    The Oracle adapter is **import-guarded**: ``oracledb`` is only required
    at ``connect()`` time, not at import time. Install the extra::

        pip install oraspine[oracle]       # oracledb

Architecture::

    DatabaseAdapter (base.py)        Abstract base: connect/execute/error_code/write_lob
        |-- OracleAdapter            oracledb (optional)
        |-- SQLiteAdapter            stdlib sqlite3 + Oracle emulation

    AdapterRegistry (registry.py)    Singleton: DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
    ❌ ``adapter = OracleAdapter(...)`` scattered through application code
    ✅ ``adapter = get_adapter(DatabaseType.ORACLE, ...)`` or ``oraspine.connect(url)``
"""

from .base import DatabaseAdapter
from .oracle import OracleAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import USE_TNS, DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseAdapter",
    "OracleAdapter",
    "SQLiteAdapter",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "DatabaseConfig",
    "DatabaseType",
    "USE_TNS",
]
