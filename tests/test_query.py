from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from svcutil.mapping import bind_query
from svcutil.query import (
    BooleanFilter,
    CheckConstraintError,
    Condition,
    DuplicateValuesError,
    ForeignKeyConstraintError,
    NumberFilter,
    Query,
    SortFilter,
    StringFilter,
    WhereBuilder,
    batch_create,
    check_slice_lengths,
    find_id_diff,
    get_ids,
    parse_db_error,
)


@dataclass
class Listing:
    region: StringFilter | None = field(default=None, metadata={"mTag": "region"})
    num: NumberFilter | None = field(default=None, metadata={"mTag": "num"})
    sort_by: SortFilter | None = field(default=None, metadata={"mTag": "sortBy"})


class FakePgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("db failure")
        self.sqlstate = sqlstate


def test_order_default_is_id_desc():
    assert WhereBuilder().order_with_filter(None).orders == ["id DESC"]


def test_order_asc_and_desc():
    assert WhereBuilder().order_with_filter(SortFilter(asc="name")).orders == ["name ASC"]
    assert WhereBuilder().order_with_filter(SortFilter(desc="name")).orders == ["name DESC"]
    assert WhereBuilder().order_with_filter(SortFilter()).orders == []


def test_string_filter_conditions():
    b = WhereBuilder().where_with_string_filter(
        "name", StringFilter(is_="bob", starts_with="ab"), "and"
    )
    assert b.conditions == [
        Condition("AND", "name = ?", ("bob",)),
        Condition("AND", "name Like ?", ("ab%",)),
    ]


def test_string_filter_or_and_like_slice():
    b = WhereBuilder().where_with_string_filter("t", StringFilter(like_slice=["x", "y"]), "OR")
    assert [c.connector for c in b.conditions] == ["OR", "OR"]
    assert [c.args for c in b.conditions] == [("%x%",), ("%y%",)]


def test_empty_column_or_missing_filter_adds_nothing():
    b = WhereBuilder()
    b.where_with_string_filter("", StringFilter(is_="a"), "and")
    b.where_with_number_filter("age", None, "and")
    b.where_with_bool_filter("", BooleanFilter(is_=True), "and")
    assert b.conditions == []


def test_number_filter_between_needs_two_values():
    b = WhereBuilder().where_with_number_filter("age", NumberFilter(between=[1]), "and")
    assert b.conditions == []
    b = WhereBuilder().where_with_number_filter("age", NumberFilter(gt=3, between=[1, 9]), "and")
    assert b.conditions == [
        Condition("AND", "age > ?", (3,)),
        Condition("AND", "age BETWEEN ? AND ?", (1, 9)),
    ]


def test_bool_filter():
    b = WhereBuilder().where_with_bool_filter("active", BooleanFilter(is_=False), "and")
    assert b.conditions == [Condition("AND", "active = ?", (False,))]


def test_query_to_sql_args():
    q = Query()
    assert q.is_nil()
    q.append("a = ?", 1).append("b = ?", 2)
    assert not q.is_nil()
    assert q.to_sql_args("and") == ("(a = ? AND b = ?)", [1, 2])
    assert q.to_sql_args("Or") == ("(a = ? OR b = ?)", [1, 2])


def test_filters_to_query_skips_empty():
    q = WhereBuilder().filters_to_query(
        {"name": StringFilter(is_="x"), "": StringFilter(is_="y"), "age": None}
    )
    assert q.queries == ["name = ?"]
    assert q.args == ["x"]
    assert WhereBuilder().filters_to_query(None).is_nil()


def test_append_filter_matches_builder():
    f = NumberFilter(lte=5, in_=[1, 2])
    q = Query().append_filter("n", f)
    b = WhereBuilder().where_with_number_filter("n", f, "and")
    assert q.queries == [c.query for c in b.conditions]
    assert q.args == [a for c in b.conditions for a in c.args]


@pytest.mark.parametrize(
    "code, cls",
    [("23505", DuplicateValuesError), ("23503", ForeignKeyConstraintError), ("23514", CheckConstraintError)],
)
def test_parse_db_error_maps_codes(code, cls):
    original = FakePgError(code)
    mapped = parse_db_error(original)
    assert isinstance(mapped, cls)
    assert mapped.__cause__ is original


def test_parse_db_error_passes_others_through():
    other = FakePgError("99999")
    assert parse_db_error(other) is other
    plain = ValueError("x")
    assert parse_db_error(plain) is plain
    assert str(DuplicateValuesError()) == "Duplicate Values"


def test_get_ids_and_diff():
    items = [{"id": 3}, {"id": 7}]
    ids = get_ids(items, lambda m: m["id"])
    assert ids[len(items):] == [3, 7]
    assert ids[: len(items)] == [0, 0]
    old = [{"id": i} for i in (1, 2, 3)]
    new = [{"id": i} for i in (2, 3, 4)]
    assert find_id_diff(old, new, lambda m: m["id"]) == ([1], [4])


def test_batch_create_chunks():
    seen = []
    batch_create(seen.append, list(range(5)), 2)
    assert seen == [[0, 1], [2, 3], [4]]


def test_batch_create_errors():
    with pytest.raises(ValueError, match="batchSize must be greater than 0"):
        batch_create(lambda chunk: None, [1], 0)

    def failing(chunk):
        if 2 in chunk:
            raise OSError("boom")

    with pytest.raises(RuntimeError, match="failed to create batch 2-4"):
        batch_create(failing, list(range(5)), 2)


def test_check_slice_lengths():
    assert check_slice_lengths([1], [1, 2])
    assert not check_slice_lengths([1, 2], ["a", "b"])