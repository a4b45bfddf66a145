"""Column descriptors and the builder table types declare them with."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from tablekit.errors import TableConfigurationError, no_such_column

if TYPE_CHECKING:
    from tablekit.services.table import Row

ContentFunction = Callable[["Row"], str]
ExpressionResolver = Callable[[Any], Any]

COLUMN_KINDS = {"text", "number", "boolean", "datetime", "counter", "callable"}

DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"


def resolve_attribute(item: Any, path: str) -> Any:
    """Read a dotted attribute path from an item, or keys from a mapping."""
    value = item
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _stringify(value: Any, empty: str) -> str:
    if value is None:
        return empty
    if hasattr(value, "value") and not isinstance(value, (str, bytes, Decimal)):
        return str(value.value)
    return str(value)


@dataclass(frozen=True, eq=False)
class Column:
    name: str
    label: str
    content_function: ContentFunction = field(repr=False)
    kind: str = "text"
    sortable: bool = False
    path: str = ""
    expression_resolver: ExpressionResolver | None = field(default=None, repr=False)
    attr: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    head_attr: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def content(self, row: Row) -> str:
        return self.content_function(row)

    def expression(self, entity: Any) -> Any:
        """Resolve the SQL expression this column sorts and filters on."""
        if self.expression_resolver is not None:
            return self.expression_resolver(entity)
        if "." not in self.path and hasattr(entity, self.path):
            return getattr(entity, self.path)
        raise TableConfigurationError(
            f"Column '{self.name}' has no expression mapping on {getattr(entity, '__name__', entity)}"
        )


def _text_content(path: str, empty: str) -> ContentFunction:
    return lambda row: _stringify(resolve_attribute(row.item, path), empty)


def _number_content(path: str, empty: str, precision: int | None) -> ContentFunction:
    def content(row: Row) -> str:
        value = resolve_attribute(row.item, path)
        if value is None:
            return empty
        if precision is None:
            return str(value)
        return f"{float(value):.{precision}f}"

    return content


def _boolean_content(path: str, empty: str, true_label: str, false_label: str) -> ContentFunction:
    def content(row: Row) -> str:
        value = resolve_attribute(row.item, path)
        if value is None:
            return empty
        return true_label if value else false_label

    return content


def _datetime_content(path: str, empty: str, fmt: str | None) -> ContentFunction:
    def content(row: Row) -> str:
        value = resolve_attribute(row.item, path)
        if value is None:
            return empty
        if isinstance(value, datetime):
            return value.strftime(fmt or DEFAULT_DATETIME_FORMAT)
        if isinstance(value, date):
            return value.strftime(fmt or DEFAULT_DATE_FORMAT)
        return str(value)

    return content


def _counter_content(row: Row) -> str:
    return str(row.position)


class ColumnBuilder:
    """Collects the columns of one table, in declaration order."""

    def __init__(self) -> None:
        self._columns: dict[str, Column] = {}

    def add(
        self,
        name: str,
        kind: str = "text",
        *,
        label: str | None = None,
        sortable: bool = False,
        field: str | None = None,
        expression: ExpressionResolver | None = None,
        content: ContentFunction | None = None,
        attr: Mapping[str, str] | None = None,
        head_attr: Mapping[str, str] | None = None,
        empty: str = "",
        format: str | None = None,
        precision: int | None = None,
        true_label: str = "Yes",
        false_label: str = "No",
    ) -> ColumnBuilder:
        if not name:
            raise TableConfigurationError("Column name is required")
        if name in self._columns:
            raise TableConfigurationError(f"Duplicate column: {name}")
        if kind not in COLUMN_KINDS:
            raise TableConfigurationError(f"Unsupported column kind '{kind}' for column '{name}'")

        path = field or name
        if kind == "counter":
            if sortable:
                raise TableConfigurationError(f"Counter column '{name}' cannot be sortable")
            content_function = _counter_content
        elif kind == "callable":
            if content is None:
                raise TableConfigurationError(f"Column '{name}' requires a content function")
            content_function = content
        elif content is not None:
            content_function = content
        elif kind == "number":
            content_function = _number_content(path, empty, precision)
        elif kind == "boolean":
            content_function = _boolean_content(path, empty, true_label, false_label)
        elif kind == "datetime":
            content_function = _datetime_content(path, empty, format)
        else:
            content_function = _text_content(path, empty)

        self._columns[name] = Column(
            name=name,
            label=label if label is not None else name.replace("_", " ").title(),
            content_function=content_function,
            kind=kind,
            sortable=sortable,
            path=path,
            expression_resolver=expression,
            attr=MappingProxyType(dict(attr or {})),
            head_attr=MappingProxyType(dict(head_attr or {})),
        )
        return self

    def get(self, name: str) -> Column:
        column = self._columns.get(name)
        if column is None:
            raise no_such_column(name)
        return column

    def has(self, name: str) -> bool:
        return name in self._columns

    def get_columns(self) -> dict[str, Column]:
        return dict(self._columns)
