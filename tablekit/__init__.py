"""Paginated, sortable, filterable table views over SQLAlchemy queries."""

from tablekit.errors import FilterValidationError, TableConfigurationError, TableNotFoundError
from tablekit.services.columns import Column, ColumnBuilder
from tablekit.services.data_source import DataSource, SelectDataSource, SequenceDataSource
from tablekit.services.filters import Filter, FilterBuilder, FilterOperator
from tablekit.services.renderer import HtmlTableRenderer, QueryStringUrlGenerator, RequestUrlGenerator
from tablekit.services.table import Row, TableAssembler, TableView
from tablekit.services.table_type import Capability, TableRegistry, TableType

__all__ = [
    "Capability",
    "Column",
    "ColumnBuilder",
    "DataSource",
    "Filter",
    "FilterBuilder",
    "FilterOperator",
    "FilterValidationError",
    "HtmlTableRenderer",
    "QueryStringUrlGenerator",
    "RequestUrlGenerator",
    "Row",
    "SelectDataSource",
    "SequenceDataSource",
    "TableAssembler",
    "TableConfigurationError",
    "TableNotFoundError",
    "TableRegistry",
    "TableType",
    "TableView",
]
