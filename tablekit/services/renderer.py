"""HTML rendering of table views and the URL generators it links with."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.requests import Request

if TYPE_CHECKING:
    from tablekit.services.columns import Column
    from tablekit.services.table import TableView


class UrlGenerator(Protocol):
    def generate(self, overrides: Mapping[str, Any]) -> str: ...


class RequestUrlGenerator:
    """Links to the current route, keeping every query parameter not overridden."""

    def __init__(self, request: Request) -> None:
        self.request = request

    def generate(self, overrides: Mapping[str, Any]) -> str:
        url = self.request.url.include_query_params(
            **{key: str(value) for key, value in overrides.items()}
        )
        return f"{url.path}?{url.query}" if url.query else url.path


class QueryStringUrlGenerator:
    def __init__(self, path: str, params: Mapping[str, Any] | None = None) -> None:
        self.path = path
        self.params = dict(params or {})

    def generate(self, overrides: Mapping[str, Any]) -> str:
        merged = {**self.params, **{key: str(value) for key, value in overrides.items()}}
        if not merged:
            return self.path
        return f"{self.path}?{urlencode(merged)}"


TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_environment = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _join_classes(*names: str | None) -> str | None:
    joined = " ".join(name for name in names if name)
    return joined or None


class HtmlTableRenderer:
    template_name = "table.html"

    def __init__(self, environment: Environment | None = None) -> None:
        self.environment = environment or _environment

    def render(self, view: TableView, url_generator: UrlGenerator) -> str:
        template = self.environment.get_template(self.template_name)
        return template.render(
            view=view,
            headers=[self.header(view, column, url_generator) for column in view.columns.values()],
            pages=self.pagination_links(view, url_generator),
            filter_controls=self.filter_controls(view),
        )

    def header(self, view: TableView, column: Column, url_generator: UrlGenerator) -> dict[str, Any]:
        header = {"column": column, "href": None, "css_class": None}
        sort = view.sort
        if sort is None or not column.sortable:
            return header

        overrides: dict[str, Any] = {
            sort.column_param: column.name,
            sort.direction_param: sort.toggle_direction(column),
        }
        if view.pagination is not None:
            overrides[view.pagination.param] = 1
        header["href"] = url_generator.generate(overrides)
        if sort.is_sorted_by(column):
            header["css_class"] = sort.css_class
        return header

    def pagination_links(self, view: TableView, url_generator: UrlGenerator) -> list[dict[str, Any]]:
        """Previous, numbered and next links; empty when there is a single page."""
        pagination = view.pagination
        if pagination is None or not pagination.total_pages or pagination.total_pages < 2:
            return []

        def link(label: str, page: int | None, active: bool = False) -> dict[str, Any]:
            css_class = _join_classes(
                pagination.li_class,
                pagination.li_class_active if active else None,
                pagination.li_class_disabled if page is None else None,
            )
            href = url_generator.generate({pagination.param: page}) if page is not None else None
            return {"label": label, "href": href, "css_class": css_class}

        links = [link("«", pagination.page_number - 1 if pagination.has_previous else None)]
        for page in range(1, pagination.total_pages + 1):
            links.append(link(str(page), page, active=page == pagination.page_number))
        links.append(link("»", pagination.page_number + 1 if pagination.has_next else None))
        return links

    def filter_controls(self, view: TableView) -> list[dict[str, Any]]:
        return [
            {
                "filter": item,
                "value": view.filter_values.get(item.name, ""),
                "choices": list(item.value_map) if item.value_map is not None else None,
            }
            for item in view.filters
        ]
