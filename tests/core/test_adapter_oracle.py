"""Tests for ``oraspine.core.adapters.oracle`` — driver interaction is mocked."""

from __future__ import annotations

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from oraspine.core.adapters.oracle import OracleAdapter
from oraspine.core.errors import ConfigError, DatabaseConnectionError


class FakeOracleError(Exception):
    pass


def _fake_driver():
    driver = MagicMock()
    driver.Error = FakeOracleError
    driver.DatabaseError = FakeOracleError
    driver.makedsn.return_value = "db1:1521/ORCLPDB1"
    return driver


class TestOracleAdapterConnect:
    def test_missing_driver_raises_config_error(self):
        with patch.dict(sys.modules, {"oracledb": None}):
            with pytest.raises(ConfigError, match="oracledb is required"):
                OracleAdapter(host="db1", service_name="ORCLPDB1").connect()

    def test_connect_uses_pool_and_holds_one_session(self):
        driver = _fake_driver()
        with patch.dict(sys.modules, {"oracledb": driver}):
            adapter = OracleAdapter(host="db1", service_name="ORCLPDB1", username="app", password="pw")
            adapter.connect()

        driver.makedsn.assert_called_once_with("db1", 1521, service_name="ORCLPDB1")
        driver.create_pool.assert_called_once()
        assert adapter.is_connected is True
        assert adapter.get_connection() is driver.create_pool.return_value.acquire.return_value

    def test_tns_alias_used_as_dsn(self):
        driver = _fake_driver()
        with patch.dict(sys.modules, {"oracledb": driver}):
            OracleAdapter(host="USETNS", service_name="PRODDB").connect()
        driver.makedsn.assert_not_called()
        assert driver.create_pool.call_args.kwargs["dsn"] == "PRODDB"

    def test_connect_failure_wrapped(self):
        driver = _fake_driver()
        driver.create_pool.side_effect = FakeOracleError("ORA-12541: TNS:no listener")
        with patch.dict(sys.modules, {"oracledb": driver}):
            with pytest.raises(DatabaseConnectionError, match="no listener"):
                OracleAdapter(host="db1", service_name="X").connect()

    def test_disconnect_releases_session(self):
        driver = _fake_driver()
        with patch.dict(sys.modules, {"oracledb": driver}):
            adapter = OracleAdapter(host="db1", service_name="X")
            adapter.connect()
            adapter.disconnect()
        pool = driver.create_pool.return_value
        pool.release.assert_called_once_with(pool.acquire.return_value)
        pool.close.assert_called_once()
        assert adapter.is_connected is False


class TestOracleAdapterErrors:
    def test_error_code_from_error_object(self):
        exc = FakeOracleError(SimpleNamespace(code=972, message="ORA-00972: identifier is too long"))
        assert OracleAdapter().error_code(exc) == 972

    def test_error_code_from_message(self):
        assert OracleAdapter().error_code(FakeOracleError("ORA-00001: unique constraint")) == 1

    def test_driver_errors(self):
        with patch.dict(sys.modules, {"oracledb": _fake_driver()}):
            assert OracleAdapter().driver_errors == (FakeOracleError,)


class TestOracleWriteLob:
    def test_selects_locator_for_update_and_writes(self):
        driver = _fake_driver()
        with patch.dict(sys.modules, {"oracledb": driver}):
            adapter = OracleAdapter(host="db1", service_name="X")
            adapter.connect()
        cursor = adapter.get_connection().cursor.return_value
        lob = MagicMock()
        cursor.fetchone.return_value = (lob,)

        adapter.write_lob("BLOBS", "CONTENT", "BLOBID", 3, b"payload")

        sql, params = cursor.execute.call_args.args
        assert sql == "SELECT CONTENT FROM BLOBS WHERE BLOBID = :key FOR UPDATE"
        assert params == {"key": 3}
        lob.write.assert_called_once_with(b"payload")
