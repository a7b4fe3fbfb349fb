"""
Shared pytest fixtures and configuration for oraspine tests.

This module provides:
- Environment and settings-cache isolation for every test
- Ready-made connections on the in-memory SQLite backend
- A strict-identifier connection that fails like Oracle on long names

Usage:
    Fixtures are auto-discovered by pytest; take them as arguments.

    def test_something(conn):
        conn.execute("SELECT 1 AS one")
"""

import os
from collections.abc import Generator

import pytest

from oraspine import OracleConnection, connect
from oraspine.core.settings import OracleSettings, clear_settings_cache
from tests._support.factories import make_settings, memory_connection
from tests._support.strict_identifiers import StrictIdentifierAdapter


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop ORASPINE_* variables and the settings cache around each test."""
    for key in list(os.environ):
        if key.startswith("ORASPINE_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Connections
# =============================================================================


@pytest.fixture
def settings() -> OracleSettings:
    return make_settings()


@pytest.fixture
def conn(settings: OracleSettings) -> Generator[OracleConnection, None, None]:
    """In-memory SQLite connection with the bookkeeping tables created."""
    connection = connect("memory", settings=settings, init_schema=True)
    yield connection
    connection.close()


@pytest.fixture
def prefixed_conn() -> Generator[OracleConnection, None, None]:
    """Connection whose ``{tables}`` live in the ``SITE1`` schema."""
    connection = memory_connection(table_prefix="site1")
    yield connection
    connection.close()


@pytest.fixture
def strict_conn() -> Generator[OracleConnection, None, None]:
    """Connection that rejects names over 30 bytes with ORA-00972."""
    adapter = StrictIdentifierAdapter(max_length=30)
    adapter.connect()
    connection = OracleConnection(adapter, make_settings(identifier_max_length=30))
    connection.ensure_schema()
    yield connection
    connection.close()
