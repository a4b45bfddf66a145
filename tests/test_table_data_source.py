from types import SimpleNamespace

import pytest
from sqlalchemy import select

from tablekit.errors import TableNotFoundError
from tablekit.services.columns import ColumnBuilder
from tablekit.services.data_source import (
    SelectDataSource,
    SequenceDataSource,
    apply_filters,
    count_statement,
)
from tablekit.services.filters import FilterBuilder, bind_filters
from tablekit.services.pagination import PaginationState
from tablekit.services.sorting import SortState
from tests.models import Person


def _sql(stmt) -> str:
    return " ".join(str(stmt).split())


def _columns() -> ColumnBuilder:
    builder = ColumnBuilder()
    builder.add("first_name", sortable=True).add("last_name", sortable=True)
    builder.add("status").add("age", "number", sortable=True)
    return builder


def _bound(params: dict, declare) -> list:
    builder = FilterBuilder(_columns())
    declare(builder)
    return bind_filters(builder.get_filters(), params)


def _sort(column: str, direction: str) -> SortState:
    return SortState(
        column_param="column",
        direction_param="direction",
        default_column=None,
        default_direction="desc",
        column=_columns().get(column),
        direction=direction,
    )


def _pagination(page: int, items_per_page: int = 10) -> PaginationState:
    return PaginationState(param="page", items_per_page=items_per_page, current_page=page)


def test_filters_are_anded_and_filter_columns_are_ored():
    filters = _bound(
        {"status": "active", "name": "ada"},
        lambda builder: builder.add("status", "eq", "status").add(
            "name", "like", ["first_name", "last_name"]
        ),
    )

    sql = _sql(apply_filters(select(Person), filters, Person))

    assert (
        "WHERE test_people.status = :status AND "
        "(test_people.first_name LIKE :name OR test_people.last_name LIKE :name)"
    ) in sql


@pytest.mark.parametrize(
    ("operator", "symbol"),
    [
        ("eq", "="),
        ("not_eq", "!="),
        ("gt", ">"),
        ("geq", ">="),
        ("lt", "<"),
        ("leq", "<="),
        ("like", "LIKE"),
        ("not_like", "NOT LIKE"),
    ],
)
def test_each_operator_renders_its_symbol(operator, symbol):
    filters = _bound({"status": "x"}, lambda builder: builder.add("status", operator, "status"))

    sql = _sql(apply_filters(select(Person), filters, Person))

    assert f"test_people.status {symbol} :status" in sql


def test_no_filters_leave_the_statement_untouched():
    base = select(Person).where(Person.age > 18)

    assert apply_filters(base, [], Person) is base


def test_filters_are_anded_onto_an_existing_where_clause():
    base = select(Person).where(Person.age > 18)
    filters = _bound({"status": "active"}, lambda builder: builder.add("status", "eq", "status"))

    sql = _sql(apply_filters(base, filters, Person))

    assert "WHERE test_people.age > :age_1 AND test_people.status = :status" in sql
    assert ":status" not in _sql(base)


def test_count_statement_drops_ordering_and_keeps_the_predicate():
    filters = _bound({"status": "active"}, lambda builder: builder.add("status", "eq", "status"))
    filtered = apply_filters(select(Person).order_by(Person.age), filters, Person)

    sql = _sql(count_statement(filtered))

    assert sql.startswith("SELECT count(*) AS count_1 FROM (SELECT")
    assert "test_people.status = :status" in sql
    assert "ORDER BY" not in sql


def test_select_source_counts_pages_with_the_same_filters(db_session, people):
    source = SelectDataSource(db_session, Person)
    filters = _bound({"status": "inactive"}, lambda builder: builder.add("status", "eq", "status"))

    assert source.count(filters) == 7
    assert source.count_pages(filters, _pagination(0, items_per_page=5)) == 2
    assert source.count_pages([], _pagination(0)) == 3


def test_select_source_count_pages_is_one_for_no_matches(db_session, people):
    source = SelectDataSource(db_session, Person)
    filters = _bound({"status": "gone"}, lambda builder: builder.add("status", "eq", "status"))

    assert source.count(filters) == 0
    assert source.count_pages(filters, _pagination(0)) == 1


def test_select_source_fetches_one_sorted_page(db_session, people):
    source = SelectDataSource(db_session, Person)

    items = source.fetch([], _sort("age", "asc"), _pagination(2))

    assert [item.id for item in items] == [21, 22, 23]


def test_select_source_rejects_pages_past_the_end(db_session, people):
    source = SelectDataSource(db_session, Person)

    with pytest.raises(TableNotFoundError):
        source.fetch([], _sort("age", "asc"), _pagination(3))


def test_select_source_like_filter_matches_any_column(db_session, people):
    people[4].last_name = "Lovelace"
    db_session.flush()
    source = SelectDataSource(db_session, Person)
    filters = _bound(
        {"name": "love"},
        lambda builder: builder.add("name", "like", ["first_name", "last_name"]),
    )

    items = source.fetch(filters, _sort("first_name", "desc"))

    assert [item.id for item in items] == [5]


def test_select_source_sort_replaces_existing_order(db_session, people):
    source = SelectDataSource(db_session, stmt=select(Person).order_by(Person.id))

    items = source.fetch([], _sort("age", "desc"), _pagination(0, items_per_page=3))

    assert source.entity is Person
    assert [item.id for item in items] == [23, 22, 21]
    assert "ORDER BY test_people.id" in _sql(source.stmt)


def test_sequence_source_applies_filters_sort_and_pages():
    items = [
        SimpleNamespace(first_name=f"First{index:02d}", last_name="Smith" if index % 2 else "Jones",
                        status="active", age=20 + index)
        for index in range(1, 24)
    ]
    source = SequenceDataSource(items)
    filters = _bound(
        {"name": "smi", "min_age": "30"},
        lambda builder: builder.add("name", "like", ["first_name", "last_name"]).add(
            "min_age", "geq", "age", value_type="number"
        ),
    )

    page = source.fetch(filters, _sort("age", "desc"), _pagination(0, items_per_page=3))

    assert source.count_pages(filters, _pagination(0, items_per_page=3)) == 3
    assert [item.age for item in page] == [43, 41, 39]


def test_sequence_source_not_like_and_missing_values():
    items = [
        SimpleNamespace(first_name="Ada", last_name=None, status="active", age=None),
        SimpleNamespace(first_name="Bob", last_name="Ross", status="active", age=40),
    ]
    source = SequenceDataSource(items)
    filters = _bound({"name": "ad"}, lambda builder: builder.add("name", "not_like", "first_name"))

    assert [item.first_name for item in source.fetch(filters)] == ["Bob"]
    ordered = source.fetch([], _sort("age", "asc"))
    assert [item.first_name for item in ordered] == ["Bob", "Ada"]


def test_null_values_fail_not_like_in_both_sources(db_session, people):
    people[0].age = None
    db_session.flush()
    filters = _bound({"age": "2"}, lambda builder: builder.add("age", "not_like", "age"))

    from_sql = sorted(item.id for item in SelectDataSource(db_session, Person).fetch(filters))
    in_memory = sorted(item.id for item in SequenceDataSource(people).fetch(filters))

    assert 1 not in from_sql
    assert in_memory == from_sql
    assert from_sql == [10, 11, 13, 14, 15, 16, 17, 18, 19, 20, 21, 23]


def test_sequence_source_sorts_on_the_displayed_path():
    columns = ColumnBuilder().add(
        "team", field="team.name", expression=lambda entity: entity.team_id, sortable=True
    )
    items = [
        SimpleNamespace(team_id=1, team=SimpleNamespace(name="Red")),
        SimpleNamespace(team_id=2, team=SimpleNamespace(name="Blue")),
    ]
    sort = SortState(
        column_param="column",
        direction_param="direction",
        default_column=None,
        default_direction="asc",
        column=columns.get("team"),
        direction="asc",
    )

    ordered = SequenceDataSource(items).fetch([], sort)

    assert [item.team.name for item in ordered] == ["Blue", "Red"]


def test_fetch_rejects_a_counted_page_past_the_end():
    state = PaginationState(param="page", items_per_page=10, current_page=3, total_pages=2)

    with pytest.raises(TableNotFoundError):
        SequenceDataSource([]).fetch([], None, state)
