"""Tests for ``oraspine.core.adapters.registry``."""

import pytest

from oraspine.core.adapters import (
    AdapterRegistry,
    DatabaseConfig,
    DatabaseType,
    OracleAdapter,
    SQLiteAdapter,
    get_adapter,
)
from oraspine.core.errors import ConfigError


class TestAdapterRegistry:
    def test_defaults(self):
        assert AdapterRegistry().names() == ["oracle", "sqlite"]

    def test_driver_aliases(self):
        registry = AdapterRegistry()
        assert registry.adapter_class("oracledb") is OracleAdapter
        assert registry.adapter_class("sqlite3") is SQLiteAdapter

    def test_get_adapter_by_enum_and_name(self):
        assert isinstance(get_adapter(DatabaseType.SQLITE), SQLiteAdapter)
        assert isinstance(get_adapter("ORACLE", host="db1", service_name="X"), OracleAdapter)

    def test_unknown_adapter(self):
        with pytest.raises(ConfigError, match="Unknown database adapter"):
            AdapterRegistry().create("postgresql")

    def test_register_custom(self):
        registry = AdapterRegistry()
        registry.register("Strict", SQLiteAdapter)
        assert isinstance(registry.create("strict"), SQLiteAdapter)


class TestDatabaseConfig:
    def test_sqlite_connection_string(self):
        assert DatabaseConfig().to_connection_string() == ":memory:"

    def test_oracle_connection_string(self):
        config = DatabaseConfig(db_type=DatabaseType.ORACLE, host="db1", service_name="ORCL")
        assert config.to_connection_string() == "db1:1521/ORCL"

    def test_tns_connection_string(self):
        config = DatabaseConfig(db_type=DatabaseType.ORACLE, host="usetns", service_name="PROD")
        assert config.use_tns is True
        assert config.to_connection_string() == "PROD"
