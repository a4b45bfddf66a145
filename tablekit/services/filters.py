from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from tablekit.errors import FilterValidationError, TableConfigurationError
from tablekit.services.columns import Column, ColumnBuilder

logger = logging.getLogger(__name__)


class FilterOperator(enum.Enum):
    EQ = "eq"
    NOT_EQ = "not_eq"
    GT = "gt"
    GEQ = "geq"
    LT = "lt"
    LEQ = "leq"
    LIKE = "like"
    NOT_LIKE = "not_like"


OPERATOR_SYMBOLS: dict[FilterOperator, str] = {
    FilterOperator.EQ: "=",
    FilterOperator.NOT_EQ: "!=",
    FilterOperator.GT: ">",
    FilterOperator.GEQ: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LEQ: "<=",
    FilterOperator.LIKE: "like",
    FilterOperator.NOT_LIKE: "not like",
}

PATTERN_OPERATORS = {FilterOperator.LIKE, FilterOperator.NOT_LIKE}

VALUE_TYPES = {"text", "number", "boolean", "date", "datetime"}

TRUE_TOKENS = {"true", "1", "yes", "on"}
FALSE_TOKENS = {"false", "0", "no", "off"}


def _normalized_operator(operator: Any) -> FilterOperator:
    if isinstance(operator, FilterOperator):
        return operator
    token = str(operator).strip().lower() if operator is not None else ""
    if token == "<>":
        return FilterOperator.NOT_EQ
    for candidate in FilterOperator:
        if token in {candidate.value, candidate.name.lower(), OPERATOR_SYMBOLS[candidate]}:
            return candidate
    raise TableConfigurationError(f"Unsupported filter operator: {operator}")


def coerce_value(value: str, value_type: str) -> Any:
    """Convert a raw request string to the filter's value type.

    Text is bound verbatim; only parsed types ignore surrounding whitespace.
    """
    if value_type == "text":
        return value
    text = value.strip()

    if value_type == "number":
        try:
            return float(text) if "." in text else int(text)
        except ValueError as exc:
            raise FilterValidationError("Expected a numeric value") from exc

    if value_type == "boolean":
        normalized = text.lower()
        if normalized in TRUE_TOKENS:
            return True
        if normalized in FALSE_TOKENS:
            return False
        raise FilterValidationError("Expected a boolean value")

    if value_type == "date":
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise FilterValidationError("Expected an ISO date value (YYYY-MM-DD)") from exc

    if value_type == "datetime":
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise FilterValidationError("Expected an ISO datetime value") from exc

    raise TableConfigurationError(f"Unsupported filter value type: {value_type}")


@dataclass(frozen=True, eq=False)
class Filter:
    """A named predicate over one or more columns.

    The columns of one filter are OR'd together; separate filters are AND'd.
    """

    name: str
    operator: FilterOperator
    columns: tuple[Column, ...]
    label: str = ""
    value_type: str = "text"
    value_map: Mapping[str, Any] | None = None
    attr: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def symbol(self) -> str:
        return OPERATOR_SYMBOLS[self.operator]

    def bind(self, raw_value: str | None) -> BoundFilter | None:
        """Bind a raw request value, or return None when the filter is inactive.

        Empty values and values missing from the value map leave the filter
        out of the current build.
        """
        if raw_value is None or str(raw_value).strip() == "":
            return None
        raw_value = str(raw_value)

        if self.value_map is not None:
            if raw_value not in self.value_map:
                logger.debug("Skipping filter %s: %r is not a mapped value", self.name, raw_value)
                return None
            value = self.value_map[raw_value]
        else:
            value = coerce_value(raw_value, self.value_type)

        if self.operator in PATTERN_OPERATORS:
            value = f"%{value}%"
        return BoundFilter(filter=self, raw_value=raw_value, value=value)


@dataclass(frozen=True)
class BoundFilter:
    filter: Filter
    raw_value: str
    value: Any

    @property
    def name(self) -> str:
        return self.filter.name

    @property
    def operator(self) -> FilterOperator:
        return self.filter.operator

    @property
    def columns(self) -> tuple[Column, ...]:
        return self.filter.columns


def bind_filters(filters, params) -> list[BoundFilter]:
    """Bind every filter to its request value, dropping inactive ones."""
    bound = []
    for item in filters:
        bound_filter = item.bind(params.get(item.name))
        if bound_filter is not None:
            bound.append(bound_filter)
    return bound


class FilterBuilder:
    """Collects the filters of one table; column names resolve against the built columns."""

    def __init__(self, columns: ColumnBuilder) -> None:
        self._columns = columns
        self._filters: dict[str, Filter] = {}

    def add(
        self,
        name: str,
        operator: FilterOperator | str,
        columns: str | list[str] | tuple[str, ...],
        *,
        label: str | None = None,
        value_type: str = "text",
        value_map: Mapping[Any, Any] | None = None,
        attr: Mapping[str, str] | None = None,
    ) -> FilterBuilder:
        if not name:
            raise TableConfigurationError("Filter name is required")
        if name in self._filters:
            raise TableConfigurationError(f"Duplicate filter: {name}")

        column_names = [columns] if isinstance(columns, str) else list(columns)
        if not column_names:
            raise TableConfigurationError(f"Filter '{name}' requires at least one column")

        resolved_operator = _normalized_operator(operator)
        if value_type not in VALUE_TYPES:
            raise TableConfigurationError(f"Unsupported value type '{value_type}' for filter '{name}'")
        if resolved_operator in PATTERN_OPERATORS and value_type != "text" and value_map is None:
            raise TableConfigurationError(
                f"Operator '{OPERATOR_SYMBOLS[resolved_operator]}' is not allowed for {value_type} filters"
            )

        self._filters[name] = Filter(
            name=name,
            operator=resolved_operator,
            columns=tuple(self._columns.get(column_name) for column_name in column_names),
            label=label if label is not None else name.replace("_", " ").title(),
            value_type=value_type,
            value_map=(
                MappingProxyType({str(key): mapped for key, mapped in value_map.items()})
                if value_map is not None
                else None
            ),
            attr=MappingProxyType(dict(attr or {})),
        )
        return self

    def get_filters(self) -> list[Filter]:
        return list(self._filters.values())
