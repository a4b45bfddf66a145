"""Table assembly: from a table type and request parameters to a `TableView`."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError
from sqlalchemy import inspect, select
from sqlalchemy.orm import Mapper, Session
from sqlalchemy.sql import Select

from tablekit.errors import TableConfigurationError
from tablekit.schemas.table import PaginationOptions, SortOptions, TableOptions
from tablekit.services.columns import Column, ColumnBuilder
from tablekit.services.data_source import DataSource, SelectDataSource, SequenceDataSource
from tablekit.services.filters import BoundFilter, Filter, FilterBuilder, bind_filters
from tablekit.services.pagination import PaginationState, resolve_pagination
from tablekit.services.renderer import HtmlTableRenderer
from tablekit.services.sorting import SortState, resolve_sort
from tablekit.services.table_type import Capability, TableType, validate_table_type

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Row:
    item: Any
    position: int
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)


@dataclass(frozen=True, eq=False)
class TableView:
    """Fully resolved table, handed to a renderer and never modified."""

    name: str
    columns: Mapping[str, Column]
    rows: tuple[Row, ...]
    filters: tuple[Filter, ...]
    filter_values: Mapping[str, str]
    pagination: PaginationState | None
    sort: SortState | None
    empty_value: str
    attributes: Mapping[str, str]
    head_attributes: Mapping[str, str]
    renderer: Any = field(default=None, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def render(self, url_generator) -> str:
        return self.renderer.render(self, url_generator)


def _resolve_options(model, values: Mapping[str, Any], table_name: str, label: str):
    try:
        return model(**dict(values))
    except ValidationError as exc:
        raise TableConfigurationError(f"Invalid {label} options for table '{table_name}': {exc}") from exc


class TableAssembler:
    """Builds table views; one instance may serve many builds.

    The session is only needed for table types whose `data_entity` is a mapped
    class or a `Select`.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = session

    def build(self, table_type: TableType, params: Mapping[str, Any]) -> TableView:
        validate_table_type(table_type)
        options = self.resolve_options(table_type)

        column_builder = ColumnBuilder()
        table_type.build_columns(column_builder)
        columns = column_builder.get_columns()
        if not columns:
            raise TableConfigurationError(f"Table '{table_type.name}' has no columns")

        filters: list[Filter] = []
        if table_type.has(Capability.FILTERABLE):
            filter_builder = FilterBuilder(column_builder)
            table_type.build_filters(filter_builder)
            filters = filter_builder.get_filters()

        sort = None
        if table_type.has(Capability.SORTABLE):
            sort_options = _resolve_options(SortOptions, table_type.sort_options(), table_type.name, "sort")
            sort = resolve_sort(sort_options, columns, params)

        pagination = None
        if table_type.has(Capability.PAGINATABLE):
            pagination_options = _resolve_options(
                PaginationOptions, table_type.pagination_options(), table_type.name, "pagination"
            )
            pagination = resolve_pagination(pagination_options, params)

        self._check_parameter_names(table_type, filters, sort, pagination)

        bound_filters = bind_filters(filters, params)
        data_source = self.data_source(table_type, options)
        if pagination is not None:
            pagination = pagination.with_total_pages(data_source.count_pages(bound_filters, pagination))
        items = data_source.fetch(bound_filters, sort, pagination)

        rows = self.wrap_rows(table_type, items, pagination)
        logger.debug(
            "Built table %s: %d rows, %d active filters",
            table_type.name,
            len(rows),
            len(bound_filters),
        )

        return TableView(
            name=table_type.name,
            columns=MappingProxyType(columns),
            rows=tuple(rows),
            filters=tuple(filters),
            filter_values=MappingProxyType(_filter_values(bound_filters)),
            pagination=pagination,
            sort=sort,
            empty_value=options.empty_value,
            attributes=MappingProxyType(dict(options.attr)),
            head_attributes=MappingProxyType(dict(options.head_attr)),
            renderer=options.renderer,
        )

    def resolve_options(self, table_type: TableType) -> TableOptions:
        options = _resolve_options(TableOptions, table_type.default_options(), table_type.name, "table")
        if options.renderer is None:
            options = options.model_copy(update={"renderer": HtmlTableRenderer()})
        return options

    def data_source(self, table_type: TableType, options: TableOptions) -> DataSource:
        entity = options.data_entity
        if hasattr(entity, "fetch") and hasattr(entity, "count_pages"):
            return entity
        if isinstance(entity, Select):
            return SelectDataSource(self._require_session(table_type), stmt=table_type.refine_query(entity))
        if isinstance(inspect(entity, raiseerr=False), Mapper):
            return SelectDataSource(
                self._require_session(table_type),
                entity=entity,
                stmt=table_type.refine_query(select(entity)),
            )
        if isinstance(entity, Sequence) and not isinstance(entity, (str, bytes)):
            return SequenceDataSource(entity)
        raise TableConfigurationError(
            f"Table '{table_type.name}' has an unsupported data_entity: {entity!r}"
        )

    def wrap_rows(
        self,
        table_type: TableType,
        items: Sequence[Any],
        pagination: PaginationState | None,
    ) -> list[Row]:
        # Positions continue across pages: page 2 of 10 starts at 11.
        start = pagination.offset if pagination is not None else 0
        rows = []
        for index, item in enumerate(items):
            row = Row(item=item, position=start + index + 1)
            attributes = table_type.row_attributes(row)
            if isinstance(attributes, Mapping) and attributes:
                row = replace(row, attributes=MappingProxyType(dict(attributes)))
            rows.append(row)
        return rows

    def _require_session(self, table_type: TableType) -> Session:
        if self.session is None:
            raise TableConfigurationError(
                f"Table '{table_type.name}' reads from the database but no session was given"
            )
        return self.session

    @staticmethod
    def _check_parameter_names(
        table_type: TableType,
        filters: Sequence[Filter],
        sort: SortState | None,
        pagination: PaginationState | None,
    ) -> None:
        reserved = set()
        if sort is not None:
            reserved.update({sort.column_param, sort.direction_param})
        if pagination is not None:
            reserved.add(pagination.param)
        clashes = sorted(item.name for item in filters if item.name in reserved)
        if clashes:
            raise TableConfigurationError(
                f"Filter names clash with request parameters on table '{table_type.name}': "
                + ", ".join(clashes)
            )


def _filter_values(bound_filters: Sequence[BoundFilter]) -> dict[str, str]:
    return {bound.name: bound.raw_value for bound in bound_filters}
