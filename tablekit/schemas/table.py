from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tablekit.config import settings

SortDirection = Literal["asc", "desc"]


class TableOptions(BaseModel):
    """Options a table type may declare; `data_entity` is required."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    data_entity: Any
    empty_value: str = settings.table_empty_value
    attr: dict[str, str] = Field(default_factory=dict)
    head_attr: dict[str, str] = Field(default_factory=dict)
    renderer: Any = None


class PaginationOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    param: str = Field(default=settings.table_page_param, min_length=1)
    items_per_page: int = Field(default=settings.table_items_per_page, gt=0)
    ul_class: str | None = "pagination"
    li_class: str | None = None
    li_class_active: str | None = "active"
    li_class_disabled: str | None = "disabled"


class SortOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    param_column: str = Field(default=settings.table_sort_column_param, min_length=1)
    param_direction: str = Field(default=settings.table_sort_direction_param, min_length=1)
    empty_column: str | None = None
    empty_direction: SortDirection = settings.table_sort_default_direction
    class_asc: str = ""
    class_desc: str = ""


class TableColumnOut(BaseModel):
    name: str
    label: str
    sortable: bool


class TableFilterOut(BaseModel):
    name: str
    label: str
    operator: str
    columns: list[str]
    value: str | None = None
    choices: list[str] | None = None


class TableRowOut(BaseModel):
    position: int
    attributes: dict[str, str]
    cells: dict[str, str]


class TablePaginationOut(BaseModel):
    page: int
    items_per_page: int
    total_pages: int


class TableSortOut(BaseModel):
    column: str
    direction: SortDirection


class TableDataResponse(BaseModel):
    table_name: str
    columns: list[TableColumnOut]
    rows: list[TableRowOut]
    filters: list[TableFilterOut]
    pagination: TablePaginationOut | None = None
    sort: TableSortOut | None = None
    empty_value: str
