"""Tests for oraspine.core.dialect — Oracle and SQLite dialects."""

import pytest

from oraspine.core.dialect import (
    Dialect,
    OracleDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)


class TestGetDialect:
    def test_known_dialects(self):
        assert isinstance(get_dialect("oracle"), OracleDialect)
        assert isinstance(get_dialect("SQLITE"), SQLiteDialect)

    def test_unknown_dialect(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("db2")

    def test_register_custom(self):
        custom = SQLiteDialect()
        register_dialect("sqlite-test", custom)
        assert get_dialect("sqlite-test") is custom

    def test_protocol(self):
        assert isinstance(OracleDialect(), Dialect)
        assert isinstance(SQLiteDialect(), Dialect)


class TestOracleDialect:
    d = OracleDialect()

    def test_placeholders(self):
        assert self.d.placeholder(0) == ":1"
        assert self.d.placeholders(3) == ":1, :2, :3"

    def test_sequences(self):
        assert self.d.next_id_query("BLOBS", "BLOBID", "SEQ_BLOBS") == "SELECT SEQ_BLOBS.NEXTVAL FROM DUAL"
        assert self.d.current_value_query("SEQ_X") == "SELECT SEQ_X.CURRVAL FROM DUAL"

    def test_empty_blob(self):
        assert self.d.empty_blob(5000) == "EMPTY_BLOB()"

    def test_range_query_native(self):
        assert self.d.range_query("SELECT A FROM T", 0, 10) == "SELECT A FROM T FETCH FIRST 10 ROWS ONLY"

    def test_range_query_synthetic(self):
        sql = self.d.range_query("SELECT A FROM T", 0, 10, native=False)
        assert sql == "SELECT * FROM (SELECT A FROM T) WHERE ROWNUM <= 10"

    def test_bookkeeping_ddl_creates_sequences(self):
        assert "CREATE SEQUENCE SEQ_LONG_IDENTIFIERS" in self.d.long_identifiers_ddl()
        assert "CREATE SEQUENCE SEQ_BLOBS" in self.d.blobs_ddl()


class TestSQLiteDialect:
    d = SQLiteDialect()

    def test_placeholders(self):
        assert self.d.placeholders(2) == "?, ?"

    def test_range_query(self):
        assert self.d.range_query("SELECT A FROM T", 20, 10) == "SELECT A FROM T LIMIT 10 OFFSET 20"

    def test_next_id(self):
        assert self.d.next_id_query("BLOBS", "BLOBID", "SEQ_BLOBS") == (
            "SELECT COALESCE(MAX(BLOBID), 0) + 1 FROM BLOBS"
        )

    def test_empty_blob(self):
        assert self.d.empty_blob(12) == "zeroblob(12)"
