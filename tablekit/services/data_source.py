"""Data sources turning bound filters, sort and pagination into rows.

`SelectDataSource` works on SQLAlchemy statements. Every step returns a new
`Select`, so the count query and the data query are derived from the same
filtered statement and the base statement is never modified.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from sqlalchemy import and_, bindparam, func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from tablekit.errors import TableConfigurationError
from tablekit.services.columns import resolve_attribute
from tablekit.services.filters import BoundFilter, FilterOperator
from tablekit.services.pagination import PaginationState, count_pages
from tablekit.services.sorting import SortState

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    def fetch(
        self,
        filters: Sequence[BoundFilter],
        sort: SortState | None = None,
        pagination: PaginationState | None = None,
    ) -> list[Any]: ...

    def count_pages(
        self, filters: Sequence[BoundFilter], pagination: PaginationState
    ) -> int: ...


SQL_OPERATORS: dict[FilterOperator, Callable[[Any, Any], Any]] = {
    FilterOperator.EQ: lambda column, param: column == param,
    FilterOperator.NOT_EQ: lambda column, param: column != param,
    FilterOperator.GT: lambda column, param: column > param,
    FilterOperator.GEQ: lambda column, param: column >= param,
    FilterOperator.LT: lambda column, param: column < param,
    FilterOperator.LEQ: lambda column, param: column <= param,
    FilterOperator.LIKE: lambda column, param: column.like(param),
    FilterOperator.NOT_LIKE: lambda column, param: column.not_like(param),
}


def filter_clause(bound: BoundFilter, entity: Any):
    """One fragment per column, OR'd, all sharing the filter's bind parameter."""
    param = bindparam(bound.name, bound.value)
    build = SQL_OPERATORS[bound.operator]
    fragments = [build(column.expression(entity), param) for column in bound.columns]
    if len(fragments) == 1:
        return fragments[0]
    return or_(*fragments)


def apply_filters(stmt: Select, filters: Sequence[BoundFilter], entity: Any) -> Select:
    if not filters:
        return stmt
    # Select.where ANDs onto an existing WHERE clause.
    return stmt.where(and_(*(filter_clause(bound, entity) for bound in filters)))


def apply_sort(stmt: Select, sort: SortState | None, entity: Any) -> Select:
    if sort is None:
        return stmt
    expression = sort.column.expression(entity)
    order = expression.asc() if sort.direction == "asc" else expression.desc()
    return stmt.order_by(None).order_by(order)


def apply_pagination(stmt: Select, pagination: PaginationState | None) -> Select:
    if pagination is None:
        return stmt
    return stmt.offset(pagination.offset).limit(pagination.items_per_page)


def count_statement(stmt: Select) -> Select:
    return select(func.count()).select_from(stmt.order_by(None).subquery())


class SelectDataSource:
    """Data source over a SQLAlchemy `Select` executed on a session."""

    def __init__(
        self,
        session: Session,
        entity: Any = None,
        stmt: Select | None = None,
        *,
        scalars: bool = True,
    ) -> None:
        if entity is None and stmt is None:
            raise TableConfigurationError("SelectDataSource requires an entity or a statement")
        if stmt is None:
            stmt = select(entity)
        if entity is None:
            entity = stmt.column_descriptions[0]["entity"]
        self.session = session
        self.entity = entity
        self.stmt = stmt
        self.scalars = scalars

    def filtered(self, filters: Sequence[BoundFilter]) -> Select:
        return apply_filters(self.stmt, filters, self.entity)

    def count(self, filters: Sequence[BoundFilter]) -> int:
        return self.session.execute(count_statement(self.filtered(filters))).scalar_one()

    def count_pages(self, filters: Sequence[BoundFilter], pagination: PaginationState) -> int:
        total_items = self.count(filters)
        total_pages = count_pages(total_items, pagination.items_per_page)
        logger.debug("Counted %d items in %d pages", total_items, total_pages)
        return total_pages

    def fetch(
        self,
        filters: Sequence[BoundFilter],
        sort: SortState | None = None,
        pagination: PaginationState | None = None,
    ) -> list[Any]:
        if pagination is not None:
            if pagination.total_pages is None:
                pagination = pagination.with_total_pages(self.count_pages(filters, pagination))
            else:
                pagination.check_bounds(pagination.total_pages)

        stmt =apply_filters(self.stmt, filters, self.entity)
        stmt = apply_sort(stmt, sort, self.entity)
        stmt = apply_pagination(stmt, pagination)
        result = self.session.execute(stmt)
        if self.scalars:
            return list(result.scalars().all())
        return list(result.all())


def like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _compare(operator: FilterOperator, value: Any, target: Any) -> bool:
    # NULL satisfies no predicate, NOT LIKE included.
    if value is None:
        return False
    if operator in (FilterOperator.LIKE, FilterOperator.NOT_LIKE):
        matched = bool(like_to_regex(str(target)).fullmatch(str(value)))
        return matched if operator is FilterOperator.LIKE else not matched
    if operator is FilterOperator.EQ:
        return value == target
    if operator is FilterOperator.NOT_EQ:
        return value != target
    if operator is FilterOperator.GT:
        return value > target
    if operator is FilterOperator.GEQ:
        return value >= target
    if operator is FilterOperator.LT:
        return value < target
    if operator is FilterOperator.LEQ:
        return value <= target
    raise TableConfigurationError(f"Unsupported filter operator: {operator}")


class SequenceDataSource:
    """Data source over items already in memory, with the same filter semantics.

    Filters and sorting read each column's dotted `path`. A column whose SQL
    `expression` differs from its path (such as a relationship name shown in
    place of a foreign key) sorts on the displayed value here and on the
    expression in `SelectDataSource`.
    """

    def __init__(self, items: Sequence[Any]) -> None:
        self.items = list(items)

    def _matches(self, item: Any, bound: BoundFilter) -> bool:
        return any(
            _compare(bound.operator, resolve_attribute(item, column.path), bound.value)
            for column in bound.columns
        )

    def filtered(self, filters: Sequence[BoundFilter]) -> list[Any]:
        return [item for item in self.items if all(self._matches(item, bound) for bound in filters)]

    def count_pages(self, filters: Sequence[BoundFilter], pagination: PaginationState) -> int:
        return count_pages(len(self.filtered(filters)), pagination.items_per_page)

    def fetch(
        self,
        filters: Sequence[BoundFilter],
        sort: SortState | None = None,
        pagination: PaginationState | None = None,
    ) -> list[Any]:
        if pagination is not None:
            if pagination.total_pages is None:
                pagination = pagination.with_total_pages(self.count_pages(filters, pagination))
            else:
                pagination.check_bounds(pagination.total_pages)

        items =self.filtered(filters)
        if sort is not None:
            path = sort.column.path
            present = [item for item in items if resolve_attribute(item, path) is not None]
            missing = [item for item in items if resolve_attribute(item, path) is None]
            present.sort(
                key=lambda item: resolve_attribute(item, path),
                reverse=sort.direction == "desc",
            )
            items = present + missing
        if pagination is not None:
            items = items[pagination.offset : pagination.offset + pagination.items_per_page]
        return items
