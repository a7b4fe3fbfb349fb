"""Tests for oraspine.core.settings module.

Covers:
- OracleSettings defaults
- Environment variable override (ORASPINE_ prefix)
- Sentinel validation
- ConnectionSettings and TNS detection
- get_settings() caching
"""

import pytest
from pydantic import ValidationError

from oraspine.core.settings import (
    ConnectionSettings,
    OracleSettings,
    clear_settings_cache,
    get_connection_settings,
    get_settings,
)


class TestOracleSettingsDefaults:
    def test_limits(self):
        s = OracleSettings(_env_file=None)
        assert s.identifier_max_length == 128
        assert s.max_varchar2_length == 4000
        assert s.in_max_size == 999

    def test_encodings(self):
        s = OracleSettings(_env_file=None)
        assert s.empty_string_sentinel == "^"
        assert s.long_identifier_prefix == "L#"
        assert s.blob_prefix == "B^#"
        assert s.rownum_alias == "RWN_TO_REMOVE"

    def test_behaviour_flags(self):
        s = OracleSettings(_env_file=None)
        assert s.native_pagination is True
        assert s.external is False
        assert s.autocommit is True
        assert s.table_prefix == ""
        assert s.table_prefixes == {}

    def test_excluded_prefixes(self):
        s = OracleSettings(_env_file=None)
        assert s.long_identifier_excluded_prefixes == ("IDX_", "TRG_", "SEQ_", "PK_", "UK_")


class TestOracleSettingsEnvOverride:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("ORASPINE_IDENTIFIER_MAX_LENGTH", "30")
        monkeypatch.setenv("ORASPINE_EXTERNAL", "true")
        monkeypatch.setenv("ORASPINE_TABLE_PREFIX", "site1")
        s = OracleSettings(_env_file=None)
        assert s.identifier_max_length == 30
        assert s.external is True
        assert s.table_prefix == "site1"

    def test_table_prefixes_from_json(self, monkeypatch):
        monkeypatch.setenv("ORASPINE_TABLE_PREFIXES", '{"users": "shared"}')
        assert OracleSettings(_env_file=None).table_prefixes == {"users": "shared"}


class TestOracleSettingsValidation:
    def test_sentinel_must_be_one_character(self):
        with pytest.raises(ValidationError):
            OracleSettings(_env_file=None, empty_string_sentinel="^^")

    def test_identifier_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            OracleSettings(_env_file=None, identifier_max_length=0)


class TestConnectionSettings:
    def test_defaults(self):
        s = ConnectionSettings(_env_file=None)
        assert s.url is None
        assert s.port == 1521
        assert s.use_tns is False

    def test_use_tns(self):
        assert ConnectionSettings(_env_file=None, host="usetns").use_tns is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("ORASPINE_DB_SERVICE_NAME", "ORCLPDB1")
        assert ConnectionSettings(_env_file=None).service_name == "ORCLPDB1"


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first

    def test_force_reload(self):
        first = get_connection_settings()
        assert get_connection_settings(_force_reload=True) is not first
