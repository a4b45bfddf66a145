from __future__ import annotations

import enum
import logging
from typing import Any

from tablekit.errors import TableConfigurationError, TableNotFoundError

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    FILTERABLE = "filterable"
    SORTABLE = "sortable"
    PAGINATABLE = "paginatable"


class TableType:
    """Declares a table: its options, columns and optional capabilities.

    Subclasses set `name` and `capabilities`, return at least `data_entity`
    from `default_options`, and add columns in `build_columns`. Tables with
    `Capability.FILTERABLE` must also implement `build_filters`.
    """

    name: str = ""
    capabilities: frozenset[Capability] = frozenset()

    def default_options(self) -> dict[str, Any]:
        return {}

    def build_columns(self, builder) -> None:
        raise NotImplementedError

    def build_filters(self, builder) -> None:
        raise NotImplementedError

    def pagination_options(self) -> dict[str, Any]:
        return {}

    def sort_options(self) -> dict[str, Any]:
        return {}

    def row_attributes(self, row) -> dict[str, str]:
        return {}

    def refine_query(self, stmt):
        return stmt

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities


def validate_table_type(table_type: TableType) -> None:
    if not isinstance(table_type, TableType):
        raise TableConfigurationError(f"Not a table type: {table_type!r}")
    if not table_type.name:
        raise TableConfigurationError(f"{type(table_type).__name__} has no name")

    unknown = [item for item in table_type.capabilities if not isinstance(item, Capability)]
    if unknown:
        raise TableConfigurationError(
            f"Unknown capabilities on table '{table_type.name}': {', '.join(map(str, unknown))}"
        )
    if type(table_type).build_columns is TableType.build_columns:
        raise TableConfigurationError(f"Table '{table_type.name}' does not build any columns")
    if (
        Capability.FILTERABLE in table_type.capabilities
        and type(table_type).build_filters is TableType.build_filters
    ):
        raise TableConfigurationError(
            f"Table '{table_type.name}' is filterable but does not build filters"
        )


class TableRegistry:
    _tables: dict[str, TableType] = {}

    @classmethod
    def register(cls, table_type: TableType) -> TableType:
        validate_table_type(table_type)
        if table_type.name in cls._tables:
            raise TableConfigurationError(f"Table '{table_type.name}' is already registered")
        cls._tables[table_type.name] = table_type
        logger.debug(
            "Registered table %s with capabilities %s",
            table_type.name,
            sorted(item.value for item in table_type.capabilities),
        )
        return table_type

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._tables.pop(name, None)

    @classmethod
    def get(cls, name: str) -> TableType:
        table_type = cls._tables.get(name)
        if table_type is None:
            raise TableNotFoundError("Unregistered table")
        return table_type

    @classmethod
    def exists(cls, name: str) -> bool:
        return name in cls._tables

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._tables)
