"""
Unit tests for Query condition helpers.

Covers the typed WHERE compilers, OR grouping of multiple columns, the
combinator switch and raw conditions with caller data.
"""

import pytest

from fluent_query import Combinator, ConfigurationError, Query


def _where(query):
    sql, params = query.build_select()
    head = "SELECT * FROM `t` "
    assert sql.startswith(head)
    return sql[len(head):], params


@pytest.fixture
def query():
    return Query().from_("t")


class TestStringConditions:
    """Tests for where_string and its variants."""

    def test_equality(self, query):
        sql, params = _where(query.where_string("name", "alice"))

        assert sql == "WHERE name = :P1"
        assert params == {":P1": "alice"}

    def test_custom_operator(self, query):
        sql, _ = _where(query.where_string("name", "m", ">="))
        assert sql == "WHERE name >= :P1"

    def test_like_wraps_value(self, query):
        sql, params = _where(query.where_string_like("name", "ali"))

        assert sql == "WHERE name LIKE :P1"
        assert params == {":P1": "%ali%"}

    def test_not(self, query):
        sql, _ = _where(query.where_string_not("name", "bob"))
        assert sql == "WHERE name != :P1"

    def test_multiple_fields_share_one_parameter(self, query):
        """One call over several columns is an OR group bound to a single value."""
        sql, params = _where(query.where_string(["first_name", "last_name"], "smith"))

        assert sql == "WHERE (first_name = :P1 OR last_name = :P1)"
        assert params == {":P1": "smith"}

    def test_empty_field_list_adds_nothing(self, query):
        sql, params = query.where_string([], "x").build_select()

        assert sql == "SELECT * FROM `t`"
        assert params == {}


class TestNumericConditions:
    """Tests for where_integer / where_decimal and their ranges."""

    def test_integer_binds_whole_number_text(self, query):
        sql, params = _where(query.where_integer("age", 30, ">="))

        assert sql == "WHERE age >= :P1"
        assert params == {":P1": "30"}

    def test_each_call_gets_its_own_parameter(self, query):
        sql, params = _where(query.where_integer("age", 30).where_integer("age", 30))

        assert sql == "WHERE age = :P1 AND age = :P2"
        assert params == {":P1": "30", ":P2": "30"}

    def test_mixed_operators_bind_distinct_keys(self, query):
        sql, params = _where(query.where_integer("age", 30).where_integer("age", "30", "!="))

        assert sql == "WHERE age = :P1 AND age != :P2"
        assert params == {":P1": "30", ":P2": "30"}

    def test_integer_not(self, query):
        sql, params = _where(query.where_integer_not("age", "25"))

        assert sql == "WHERE age != :P1"
        assert params == {":P1": "25"}

    def test_decimal_precision(self, query):
        _, params = _where(query.where_decimal("price", 3.14159, 2))
        assert params == {":P1": "3.14"}

    def test_decimal_non_numeric_binds_zero(self, query):
        _, params = _where(query.where_decimal("price", "n/a"))
        assert params == {":P1": "0.00"}

    def test_decimal_not(self, query):
        sql, params = _where(query.where_decimal_not("price", 9.999, 2))

        assert sql == "WHERE price != :P1"
        assert params == {":P1": "10.00"}

    def test_decimal_range_both_bounds(self, query):
        sql, params = _where(query.where_decimal_in_range("price", 1, 2.5))

        assert sql == "WHERE (price >= :P1 AND price <= :P2)"
        assert params == {":P1": "1.00", ":P2": "2.50"}

    def test_decimal_range_lower_bound_only(self, query):
        sql, params = _where(query.where_decimal_in_range("price", from_=5))

        assert sql == "WHERE price >= :P1"
        assert params == {":P1": "5.00"}

    def test_decimal_range_upper_bound_only(self, query):
        sql, params = _where(query.where_decimal_in_range("price", to=5))

        assert sql == "WHERE price <= :P1"
        assert params == {":P1": "5.00"}

    def test_decimal_range_zero_is_a_bound(self, query):
        """Zero is a real bound, only None is open."""
        sql, _ = _where(query.where_decimal_in_range("price", 0, 10))
        assert sql == "WHERE (price >= :P1 AND price <= :P2)"

    def test_decimal_range_without_bounds_adds_nothing(self, query):
        sql, params = query.where_decimal_in_range("price").build_select()

        assert sql == "SELECT * FROM `t`"
        assert params == {}

    def test_decimal_range_equal_bounds_collapse(self, query):
        """Bounds equal after rounding become a single equality."""
        sql, params = _where(query.where_decimal_in_range("price", 1, 1.001))

        assert sql == "WHERE price = :P1"
        assert params == {":P1": "1.00"}

    def test_integer_range_over_several_fields(self, query):
        sql, params = _where(query.where_integer_in_range(["min_age", "max_age"], 18, 65))

        assert sql == "WHERE ((min_age >= :P1 AND min_age <= :P2) OR (max_age >= :P1 AND max_age <= :P2))"
        assert params == {":P1": "18", ":P2": "65"}


class TestBooleanConditions:
    """Boolean tests render inline and bind nothing."""

    def test_true(self, query):
        sql, params = _where(query.where_true("active"))

        assert sql == "WHERE active IS TRUE"
        assert params == {}

    def test_false(self, query):
        sql, _ = _where(query.where_false("deleted"))
        assert sql == "WHERE deleted IS FALSE"

    @pytest.mark.parametrize("value, expected", [(1, "IS TRUE"), (0, "IS FALSE"), ("", "IS FALSE")])
    def test_boolean_uses_truthiness(self, query, value, expected):
        sql, _ = _where(query.where_boolean("flag", value))
        assert sql == f"WHERE flag {expected}"

    def test_boolean_or_group(self, query):
        sql, _ = _where(query.where_true(["a", "b"]))
        assert sql == "WHERE (a IS TRUE OR b IS TRUE)"


class TestTemporalConditions:
    """Tests for date/time/datetime comparisons and ranges."""

    def test_date_comparison(self, query):
        sql, params = _where(query.where_date("created_at", "2024-01-15 10:30:00", ">="))

        assert sql == "WHERE DATE(created_at) >= DATE(:P1)"
        assert params == {":P1": "2024-01-15"}

    def test_time_comparison(self, query):
        sql, params = _where(query.where_time("starts_at", "08:15"))

        assert sql == "WHERE TIME(starts_at) = TIME(:P1)"
        assert params == {":P1": "08:15:00"}

    def test_datetime_comparison(self, query):
        sql, params = _where(query.where_datetime("created_at", "2024-01-15", "<"))

        assert sql == "WHERE DATETIME(created_at) < DATETIME(:P1)"
        assert params == {":P1": "2024-01-15 00:00:00"}

    def test_unparseable_date_binds_null(self, query):
        _, params = _where(query.where_date("created_at", "garbage"))
        assert params == {":P1": None}

    def test_date_range_equal_bounds(self, query):
        sql, params = _where(query.where_date_in_range("d", "2024-01-01", "2024-01-01"))

        assert sql == "WHERE DATE(d) = DATE(:P1)"
        assert params == {":P1": "2024-01-01"}

    def test_date_range_between(self, query):
        sql, params = _where(query.where_date_in_range("d", "2024-01-01", "2024-01-31"))

        assert sql == "WHERE DATE(d) BETWEEN DATE(:P1) AND DATE(:P2)"
        assert params == {":P1": "2024-01-01", ":P2": "2024-01-31"}

    def test_date_range_open_ended(self, query):
        sql, _ = _where(query.where_date_in_range("d", from_="2024-01-01"))
        assert sql == "WHERE DATE(d) >= DATE(:P1)"

        other = Query().from_("t").where_date_in_range("d", to="2024-01-31")
        sql, _ = _where(other)
        assert sql == "WHERE DATE(d) <= DATE(:P1)"

    def test_date_range_empty_bounds_add_nothing(self, query):
        """Empty strings and None are both treated as missing bounds."""
        sql, params = query.where_date_in_range("d", "", None).build_select()

        assert sql == "SELECT * FROM `t`"
        assert params == {}

    def test_date_range_zero_bounds_add_nothing(self, query):
        sql, params = query.where_date_in_range("d", "0", "0").build_select()

        assert sql == "SELECT * FROM `t`"
        assert params == {}

    def test_date_range_zero_upper_bound_is_open(self, query):
        sql, params = _where(query.where_date_in_range("d", "2024-01-01", "0"))

        assert sql == "WHERE DATE(d) >= DATE(:P1)"
        assert params == {":P1": "2024-01-01"}

    def test_time_range(self, query):
        sql, params = _where(query.where_time_in_range("t", "09:00", "17:30"))

        assert sql == "WHERE TIME(t) BETWEEN TIME(:P1) AND TIME(:P2)"
        assert params == {":P1": "09:00:00", ":P2": "17:30:00"}

    def test_datetime_range(self, query):
        sql, _ = _where(query.where_datetime_in_range("ts", "2024-01-01", "2024-02-01"))
        assert sql == "WHERE DATETIME(ts) BETWEEN DATETIME(:P1) AND DATETIME(:P2)"


class TestListConditions:
    """Tests for where_in_list / where_not_in_list."""

    def test_in_list(self, query):
        sql, params = _where(query.where_in_list("id", [1, 2, 3]))

        assert sql == "WHERE id IN (:P1,:P2,:P3)"
        assert params == {":P1": 1, ":P2": 2, ":P3": 3}

    def test_not_in_list(self, query):
        sql, _ = _where(query.where_not_in_list("id", ["a", "b"]))
        assert sql == "WHERE id NOT IN (:P1,:P2)"

    def test_empty_list_is_noop(self, query):
        sql, params = query.where_in_list("id", []).build_select()

        assert sql == "SELECT * FROM `t`"
        assert params == {}

    def test_accepts_any_iterable(self, query):
        sql, _ = _where(query.where_in_list("id", (v for v in (7, 8))))
        assert sql == "WHERE id IN (:P1,:P2)"

    def test_single_string_is_one_value(self, query):
        sql, params = _where(query.where_in_list("name", "alice"))

        assert sql == "WHERE name IN (:P1)"
        assert params == {":P1": "alice"}


class TestRawConditions:
    """Tests for where() with caller-supplied data."""

    def test_mapping_data(self, query):
        sql, params = _where(query.where("age BETWEEN :lo AND :hi", {"lo": 18, ":hi": 65}))

        assert sql == "WHERE age BETWEEN :lo AND :hi"
        assert params == {":lo": 18, ":hi": 65}

    def test_positional_data(self, query):
        _, params = _where(query.where("a = :0 AND b = :1", ["x", "y"]))
        assert params == {":0": "x", ":1": "y"}

    def test_generated_keys_skip_caller_keys(self, query):
        """A caller key that looks generated is never overwritten."""
        query.where("owner = :P1", {"P1": "mine"}).where_string("name", "alice")
        sql, params = _where(query)

        assert sql == "WHERE owner = :P1 AND name = :P2"
        assert params == {":P1": "mine", ":P2": "alice"}

    def test_data_cannot_rebind_generated_key(self, query):
        query.where_string("a", "x")

        with pytest.raises(ConfigurationError, match=":P1"):
            query.where("b = :P1", {"P1": 5})

        sql, params = _where(query)
        assert sql == "WHERE a = :P1"
        assert params == {":P1": "x"}

    def test_insert_param_cannot_rebind_generated_key(self, query):
        query.where_string("a", "x")

        with pytest.raises(ConfigurationError):
            query.insert_param(5, "P1")

        assert query.parameters == {":P1": "x"}

    def test_set_and_join_data_cannot_rebind_generated_key(self, query):
        query.set_string("a", "x")

        with pytest.raises(ConfigurationError):
            query.set("b = :P1", {":P1": 5})
        with pytest.raises(ConfigurationError):
            query.join("INNER JOIN u ON u.id = :P1", {"P1": 5})

        sql, params = query.build_update()
        assert sql == "UPDATE `t` SET a = :P1"
        assert params == {":P1": "x"}

    def test_insert_param_last_write_wins(self, query):
        query.where("id = :id").insert_param(1, "id").insert_param(2, ":id")
        assert query.parameters == {":id": 2}

    def test_create_param_returns_key(self, query):
        key = query.create_param("v")

        assert key == ":P1"
        assert query.parameters == {":P1": "v"}


class TestCombinator:
    """Tests for inclusive()."""

    def test_default_is_and(self, query):
        sql, _ = _where(query.where_true("a").where_true("b"))
        assert sql == "WHERE a IS TRUE AND b IS TRUE"

    @pytest.mark.parametrize("value", [False, "or", "OR", "no", Combinator.OR])
    def test_or_values(self, query, value):
        sql, _ = _where(query.inclusive(value).where_true("a").where_true("b"))
        assert sql == "WHERE a IS TRUE OR b IS TRUE"

    @pytest.mark.parametrize("value", [True, "and", "yes", Combinator.AND])
    def test_and_values(self, query, value):
        query.inclusive(False).inclusive(value)
        sql, _ = _where(query.where_true("a").where_true("b"))
        assert sql == "WHERE a IS TRUE AND b IS TRUE"

    def test_unknown_value_keeps_combinator(self, query):
        query.inclusive("or").inclusive("maybe")
        sql, _ = _where(query.where_true("a").where_true("b"))
        assert sql == "WHERE a IS TRUE OR b IS TRUE"

    def test_or_group_inside_and(self, query):
        query.where_string(["a", "b"], "x").where_integer("c", 1)
        sql, _ = _where(query)
        assert sql == "WHERE (a = :P1 OR b = :P1) AND c = :P2"


class TestParameterPrefix:
    """Generated keys follow the configured prefix."""

    def test_parameter_prefix_from_settings(self, monkeypatch):
        from fluent_query.config import get_settings

        monkeypatch.setenv("FQ_PARAM_PREFIX", "Q")
        get_settings.cache_clear()

        sql, params = Query().from_("t").where_integer("a", 1).build_select()

        assert sql == "SELECT * FROM `t` WHERE a = :Q1"
        assert params == {":Q1": "1"}
