"""Tests for oraspine.sql.arguments — array bind expansion and IN splitting."""

from oraspine.sql.arguments import expand_arguments
from oraspine.sql.lexer import MaskedQuery, marker


class TestExpandArguments:
    def test_positional_args_untouched(self):
        assert expand_arguments("a = ?", [1]) == ("a = ?", [1])

    def test_none(self):
        assert expand_arguments("SELECT 1", None) == ("SELECT 1", None)

    def test_colon_is_stripped_from_keys(self):
        assert expand_arguments("a = :id", {":id": 1}) == ("a = :id", {"id": 1})

    def test_list_expands_to_one_marker_per_element(self):
        text, args = expand_arguments("x IN (:ids)", {":ids": [1, 2, 3]})
        assert text == "x IN (:ids_0, :ids_1, :ids_2)"
        assert args == {"ids_0": 1, "ids_1": 2, "ids_2": 3}

    def test_marker_prefix_of_another_marker(self):
        text, args = expand_arguments("a IN (:id) AND b = :ids", {"id": [1, 2], "ids": 5})
        assert text == "a IN (:id_0, :id_1) AND b = :ids"
        assert args == {"id_0": 1, "id_1": 2, "ids": 5}

    def test_set_values_are_sorted(self):
        _, args = expand_arguments("x IN (:v)", {"v": {3, 1, 2}})
        assert list(args.values()) == [1, 2, 3]

    def test_empty_list_leaves_empty_in(self):
        assert expand_arguments("x IN (:v)", {"v": []}) == ("x IN ()", {})


class TestInListSplitting:
    def test_long_list_split_into_or_group(self):
        text, args = expand_arguments(
            "SELECT * FROM t WHERE x IN (:v)", {"v": [1, 2, 3, 4, 5]}, in_max_size=2
        )
        assert text == (
            "SELECT * FROM t WHERE (x IN (:v_0, :v_1) OR x IN (:v_2, :v_3) OR x IN (:v_4))"
        )
        assert len(args) == 5

    def test_not_in_split_into_and_group(self):
        text, _ = expand_arguments("x NOT IN (:v)", {"v": [1, 2, 3]}, in_max_size=2)
        assert text == "(x NOT IN (:v_0, :v_1) AND x NOT IN (:v_2))"

    def test_qualified_expression(self):
        text, _ = expand_arguments("n.nid IN (:v)", {"v": [1, 2, 3]}, in_max_size=2)
        assert text == "(n.nid IN (:v_0, :v_1) OR n.nid IN (:v_2))"

    def test_table_placeholder_expression(self):
        text, _ = expand_arguments(
            "SELECT * FROM {items} WHERE {items}.id IN (:v)", {"v": [1, 2, 3]}, in_max_size=2
        )
        assert text == (
            "SELECT * FROM {items} WHERE ({items}.id IN (:v_0, :v_1) OR {items}.id IN (:v_2))"
        )

    def test_function_expression(self):
        text, _ = expand_arguments(
            "WHERE UPPER(code) IN (:v)", {"v": ["a", "b", "c"]}, in_max_size=2
        )
        assert text == "WHERE (UPPER(code) IN (:v_0, :v_1) OR UPPER(code) IN (:v_2))"

    def test_nested_call_inside_parenthesised_condition(self):
        text, _ = expand_arguments(
            "WHERE (a = 1 AND COALESCE(n.x, LOWER(n.y)) NOT IN (:v))", {"v": [1, 2, 3]}, in_max_size=2
        )
        assert text == (
            "WHERE (a = 1 AND (COALESCE(n.x, LOWER(n.y)) NOT IN (:v_0, :v_1)"
            " AND COALESCE(n.x, LOWER(n.y)) NOT IN (:v_2)))"
        )

    def test_quoted_identifier_expression(self):
        text, _ = expand_arguments('WHERE t."Code" IN (:v)', {"v": [1, 2, 3]}, in_max_size=2)
        assert text == 'WHERE (t."Code" IN (:v_0, :v_1) OR t."Code" IN (:v_2))'

    def test_masked_literal_expression(self):
        masked = MaskedQuery.lex("WHERE 'x' IN (:v)")
        text, _ = expand_arguments(masked.text, {"v": [1, 2, 3]}, in_max_size=2)
        assert text == f"WHERE ({marker(0)} IN (:v_0, :v_1) OR {marker(0)} IN (:v_2))"

    def test_list_at_limit_is_not_split(self):
        text, _ = expand_arguments("x IN (:v)", {"v": [1, 2]}, in_max_size=2)
        assert text == "x IN (:v_0, :v_1)"
