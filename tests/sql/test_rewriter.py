"""Tests for oraspine.sql.rewriter — the stage pipeline, stage by stage."""

import pytest

from oraspine.sql.lexer import MaskedQuery
from oraspine.sql.rewriter import DialectRewriter
from tests._support.factories import memory_connection

LONG_COLUMN = "a_column_name_that_is_far_too_long"
LONG_TABLE = "a_table_name_that_is_far_too_long"


@pytest.fixture
def rewriter():
    return DialectRewriter()


@pytest.fixture
def conn30():
    connection = memory_connection(identifier_max_length=30)
    yield connection
    connection.close()


class TestEndToEnd:
    def test_prefixed_select(self):
        rewriter = DialectRewriter(table_prefix="site1")
        assert rewriter.rewrite("SELECT name FROM {users} WHERE id = :id") == (
            'SELECT "NAME" FROM "SITE1"."USERS" WHERE ID = :id'
        )

    def test_input_masked_query_is_not_mutated(self, rewriter):
        masked = MaskedQuery.lex("SELECT '' FROM DUAL")
        rewriter.rewrite_masked(masked)
        assert masked.render() == "SELECT '' FROM DUAL"


class TestEmptyLiterals:
    def test_empty_literal_becomes_sentinel(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE b = ''") == "SELECT A FROM T WHERE B = '^'"

    def test_custom_sentinel(self):
        rewriter = DialectRewriter(sentinel="~")
        assert rewriter.rewrite("SELECT a FROM t WHERE b = ''") == "SELECT A FROM T WHERE B = '~'"

    def test_concatenation_with_empty_literal_is_dropped(self, rewriter):
        assert rewriter.rewrite("SELECT '' || title AS v FROM t") == "SELECT TITLE AS V FROM T"
        assert rewriter.rewrite("SELECT title || '' AS v FROM t") == "SELECT TITLE AS V FROM T"


class TestAnsi:
    def test_select_without_from_gets_dual(self, rewriter):
        assert rewriter.rewrite("SELECT 1") == "SELECT 1 FROM DUAL"

    def test_from_inside_literal_does_not_count(self, rewriter):
        assert rewriter.rewrite("SELECT 'from'") == "SELECT 'from' FROM DUAL"

    def test_bitand(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE flags & 4 = 4") == (
            "SELECT A FROM T WHERE BITAND(FLAGS,4) = 4"
        )

    def test_regexp(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE (title REGEXP '^a')") == (
            "SELECT A FROM T WHERE REGEXP_LIKE(TITLE,'^a')"
        )

    def test_release_savepoint(self, rewriter):
        assert rewriter.rewrite("RELEASE SAVEPOINT sp1") == "BEGIN NULL; END;"

    def test_quoted_identifiers_are_upper_cased(self, rewriter):
        assert rewriter.rewrite('SELECT "mixedCase" FROM t') == 'SELECT "MIXEDCASE" FROM T'


class TestReservedWords:
    def test_columns_binds_and_placeholders(self, rewriter):
        assert rewriter.rewrite("SELECT size FROM {node} WHERE uid = :uid") == (
            'SELECT "SIZE" FROM "NODE" WHERE "UID" = :db_uid'
        )

    def test_date_literal(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE d > date '2020-01-01'") == (
            "SELECT A FROM T WHERE D > DATE '2020-01-01'"
        )


class TestCompatibility:
    def test_empty_in_list(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE id IN ()") == "SELECT A FROM T WHERE ID = NULL"

    def test_false(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE (FALSE)") == "SELECT A FROM T WHERE (1=0)"

    def test_pow(self, rewriter):
        assert rewriter.rewrite("SELECT POW(2, 3) AS p FROM DUAL") == "SELECT POWER(2, 3) AS P FROM DUAL"

    def test_escape_clause(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE b LIKE 'x\\_%' ESCAPE '\\\\'") == (
            "SELECT A FROM T WHERE B LIKE 'x\\_%' ESCAPE '\\'"
        )

    def test_show_tables(self, rewriter):
        assert rewriter.rewrite("SHOW TABLES") == "SELECT * FROM USER_TABLES"

    def test_connection_id(self, rewriter):
        assert rewriter.rewrite("SELECT CONNECTION_ID() FROM DUAL") == (
            "SELECT DISTINCT SID FROM V$MYSTAT"
        )


class TestTablePrefixes:
    def test_no_prefix(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM {users}") == 'SELECT A FROM "USERS"'

    def test_per_table_prefix_overrides_default(self):
        rewriter = DialectRewriter(table_prefix="main", table_prefixes={"users": "shared"})
        assert rewriter.rewrite("SELECT a FROM {users}, {node}") == (
            'SELECT A FROM "SHARED"."USERS", "MAIN"."NODE"'
        )

    def test_prefix_tables_unquoted_input(self):
        rewriter = DialectRewriter(table_prefix="site1")
        assert rewriter.prefix_tables("SELECT * FROM {users}") == 'SELECT * FROM "SITE1"."USERS"'

    def test_prefix_tables_quoted_input(self):
        rewriter = DialectRewriter(table_prefix="site1")
        assert rewriter.prefix_tables('SELECT "{SEQ_X}".CURRVAL FROM DUAL', quoted=True) == (
            'SELECT "SITE1"."SEQ_X".CURRVAL FROM DUAL'
        )

    def test_check_db_prefix(self):
        rewriter = DialectRewriter()
        assert rewriter.check_db_prefix("site1") == "SITE1"
        assert rewriter.check_db_prefix("") == ""


class TestConditional:
    def test_if_becomes_case(self, rewriter):
        assert rewriter.rewrite("SELECT IF(a > 1, 'x', 'y') AS v FROM t") == (
            "SELECT CASE WHEN A > 1 THEN 'x' ELSE 'y' END AS V FROM T"
        )

    def test_nested_if(self, rewriter):
        assert rewriter.rewrite("SELECT IF(a, IF(b, 1, 2), 3) AS v FROM t") == (
            "SELECT CASE WHEN A THEN CASE WHEN B THEN 1 ELSE 2 END ELSE 3 END AS V FROM T"
        )

    def test_commas_inside_nested_calls(self, rewriter):
        assert rewriter.rewrite("SELECT IF(COALESCE(a, b) > 0, 1, 0) AS v FROM t") == (
            "SELECT CASE WHEN COALESCE(A, B) > 0 THEN 1 ELSE 0 END AS V FROM T"
        )

    def test_nullif_is_not_rewritten(self, rewriter):
        assert rewriter.rewrite("SELECT NULLIF(a, b) AS v FROM t") == "SELECT NULLIF(A, B) AS V FROM T"

    def test_wrong_arity_is_left_alone(self, rewriter):
        assert rewriter.rewrite("SELECT IF(a, b) FROM t") == "SELECT IF(A, B) FROM T"


class TestCaseFolding:
    def test_literals_and_comments_untouched(self, rewriter):
        assert rewriter.rewrite("SELECT /*+ INDEX(t idx) */ a FROM t -- size") == (
            "SELECT /*+ INDEX(t idx) */ A FROM T -- size"
        )
        assert rewriter.rewrite("SELECT a FROM t WHERE b = 'name size'") == (
            "SELECT A FROM T WHERE B = 'name size'"
        )

    def test_bind_names_keep_their_case(self, rewriter):
        assert rewriter.rewrite("SELECT a FROM t WHERE b = :MyBind") == (
            "SELECT A FROM T WHERE B = :MyBind"
        )


class TestLongIdentifiers:
    def test_registered_column_is_aliased(self, conn30):
        alias = conn30.long_identifiers.resolve(LONG_COLUMN)
        assert conn30.rewriter.rewrite(f"SELECT {LONG_COLUMN} FROM {{t}}") == (
            f'SELECT "{alias}" FROM "T"'
        )

    def test_long_table_placeholder_is_registered(self, conn30):
        sql = conn30.rewriter.rewrite(f"SELECT a FROM {{{LONG_TABLE}}}")
        alias = conn30.long_identifiers.resolve(LONG_TABLE)
        assert sql == f'SELECT A FROM "{alias}"'

    def test_long_prefix_is_resolved(self, conn30):
        rewriter = DialectRewriter(conn30.long_identifiers, table_prefix=LONG_TABLE)
        alias = conn30.long_identifiers.resolve(LONG_TABLE)
        assert rewriter.rewrite("SELECT a FROM {users}") == f'SELECT A FROM "{alias}"."USERS"'

    def test_external_skips_long_identifiers(self, conn30):
        conn30.long_identifiers.resolve(LONG_COLUMN)
        rewriter = DialectRewriter(conn30.long_identifiers, external=True)
        assert rewriter.rewrite(f"SELECT {LONG_COLUMN} FROM {{t}}") == (
            f'SELECT {LONG_COLUMN.upper()} FROM "T"'
        )
