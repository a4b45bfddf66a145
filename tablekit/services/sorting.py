from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from tablekit.errors import TableConfigurationError, TableNotFoundError, no_sortable_column
from tablekit.schemas.table import SortOptions
from tablekit.services.columns import Column

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortState:
    column_param: str
    direction_param: str
    default_column: str | None
    default_direction: str
    column: Column
    direction: str
    class_asc: str = ""
    class_desc: str = ""

    @property
    def column_name(self) -> str:
        return self.column.name

    @property
    def css_class(self) -> str:
        return self.class_asc if self.direction == "asc" else self.class_desc

    def is_sorted_by(self, column: Column) -> bool:
        return self.column.name == column.name

    def toggle_direction(self, column: Column) -> str:
        """Direction a header link for `column` should request."""
        if self.is_sorted_by(column):
            return "desc" if self.direction == "asc" else "asc"
        return self.default_direction


def _first_sortable(columns: Mapping[str, Column]) -> Column | None:
    for column in columns.values():
        if column.sortable:
            return column
    return None


def resolve_sort(options: SortOptions, columns: Mapping[str, Column], params) -> SortState:
    column_name = params.get(options.param_column)
    direction = params.get(options.param_direction)

    if column_name is None or column_name == "":
        if options.empty_column is None:
            column = _first_sortable(columns)
            if column is None:
                raise no_sortable_column()
        else:
            column = columns.get(options.empty_column)
            if column is None:
                raise TableConfigurationError(
                    f"Default sort column '{options.empty_column}' does not exist"
                )
    else:
        column = columns.get(column_name)
        if column is None:
            raise TableNotFoundError(f"Unknown sort column: {column_name}")

    # Applies to declared defaults as well as request values.
    if not column.sortable:
        raise TableNotFoundError(f"Column '{column.name}' is not sortable")

    if direction is None or direction == "":
        direction = options.empty_direction
    direction = str(direction).lower()
    if direction not in SORT_DIRECTIONS:
        raise TableNotFoundError(f"Invalid sort direction: {direction}")

    return SortState(
        column_param=options.param_column,
        direction_param=options.param_direction,
        default_column=options.empty_column,
        default_direction=options.empty_direction,
        column=column,
        direction=direction,
        class_asc=options.class_asc,
        class_desc=options.class_desc,
    )
