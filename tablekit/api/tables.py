from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from tablekit.db import get_db
from tablekit.schemas.table import (
    TableColumnOut,
    TableDataResponse,
    TableFilterOut,
    TablePaginationOut,
    TableRowOut,
    TableSortOut,
)
from tablekit.services.renderer import RequestUrlGenerator
from tablekit.services.table import TableAssembler, TableView
from tablekit.services.table_type import TableRegistry

router = APIRouter(prefix="/tables", tags=["tables"])


def _data_response(view: TableView) -> TableDataResponse:
    pagination = None
    if view.pagination is not None:
        pagination = TablePaginationOut(
            page=view.pagination.page_number,
            items_per_page=view.pagination.items_per_page,
            total_pages=view.pagination.total_pages,
        )
    sort = None
    if view.sort is not None:
        sort = TableSortOut(column=view.sort.column_name, direction=view.sort.direction)

    return TableDataResponse(
        table_name=view.name,
        columns=[
            TableColumnOut(name=column.name, label=column.label, sortable=column.sortable)
            for column in view.columns.values()
        ],
        rows=[
            TableRowOut(
                position=row.position,
                attributes=dict(row.attributes),
                cells={name: column.content(row) for name, column in view.columns.items()},
            )
            for row in view.rows
        ],
        filters=[
            TableFilterOut(
                name=item.name,
                label=item.label,
                operator=item.symbol,
                columns=[column.name for column in item.columns],
                value=view.filter_values.get(item.name),
                choices=list(item.value_map) if item.value_map is not None else None,
            )
            for item in view.filters
        ],
        pagination=pagination,
        sort=sort,
        empty_value=view.empty_value,
    )


@router.get("/{table_name}", response_class=HTMLResponse)
def render_table(
    table_name: str,
    request: Request,
    db: Session = Depends(get_db),
):
    table_type = TableRegistry.get(table_name)
    view = TableAssembler(db).build(table_type, request.query_params)
    return HTMLResponse(view.render(RequestUrlGenerator(request)))


@router.get("/{table_name}/data", response_model=TableDataResponse)
def get_table_data(
    table_name: str,
    request: Request,
    db: Session = Depends(get_db),
):
    table_type = TableRegistry.get(table_name)
    view = TableAssembler(db).build(table_type, request.query_params)
    return _data_response(view)
