"""Adapter lookup by backend name.

``connect()`` never names an adapter class: it asks ``get_adapter()`` for a
``DatabaseType`` and passes keyword arguments through. Tests swap in
fault-injecting adapters with ``adapter_registry.register()``.

Driver spellings are accepted as aliases, so ``"oracledb"`` and
``"sqlite3"`` resolve like ``"oracle"`` and ``"sqlite"``.
"""

from __future__ import annotations

from typing import Any

from oraspine.core.errors import ConfigError

from .base import DatabaseAdapter
from .oracle import OracleAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType

_ALIASES = {
    "oracledb": DatabaseType.ORACLE.value,
    "sqlite3": DatabaseType.SQLITE.value,
}


class AdapterRegistry:
    """Backend name → adapter class."""

    def __init__(self) -> None:
        self._adapters: dict[str, type[DatabaseAdapter]] = {
            DatabaseType.ORACLE.value: OracleAdapter,
            DatabaseType.SQLITE.value: SQLiteAdapter,
        }

    @staticmethod
    def _key(name: DatabaseType | str) -> str:
        key = name.value if isinstance(name, DatabaseType) else name.lower()
        return _ALIASES.get(key, key)

    def register(self, name: DatabaseType | str, adapter_class: type[DatabaseAdapter]) -> None:
        """Bind ``name`` to ``adapter_class``, replacing any previous binding."""
        self._adapters[self._key(name)] = adapter_class

    def adapter_class(self, name: DatabaseType | str) -> type[DatabaseAdapter]:
        key = self._key(name)
        try:
            return self._adapters[key]
        except KeyError:
            raise ConfigError(
                f"Unknown database adapter: {key!r}. Registered: {self.names()}"
            ) from None

    def create(self, name: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
        """Unconnected adapter for ``name``, built from ``kwargs``."""
        return self.adapter_class(name)(**kwargs)

    def names(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
    """
    Unconnected adapter for ``db_type``.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="dev.db", schemas=("SITE1",))
        adapter = get_adapter("oracle", host="db1", service_name="ORCLPDB1")
    """
    return adapter_registry.create(db_type, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
