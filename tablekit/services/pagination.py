from __future__ import annotations

from dataclasses import dataclass, replace

from tablekit.errors import TableNotFoundError
from tablekit.schemas.table import PaginationOptions


def count_pages(total_items: int, items_per_page: int) -> int:
    """Number of pages for a result size; an empty result still has one page."""
    total_pages = (total_items + items_per_page - 1) // items_per_page if total_items else 1
    return max(1, total_pages)


@dataclass(frozen=True)
class PaginationState:
    param: str
    items_per_page: int
    current_page: int
    total_pages: int | None = None
    ul_class: str | None = "pagination"
    li_class: str | None = None
    li_class_active: str | None = "active"
    li_class_disabled: str | None = "disabled"

    @property
    def offset(self) -> int:
        return self.current_page * self.items_per_page

    @property
    def page_number(self) -> int:
        """Current page as shown to users (1-based)."""
        return self.current_page + 1

    @property
    def has_previous(self) -> bool:
        return self.current_page > 0

    @property
    def has_next(self) -> bool:
        return self.total_pages is not None and self.current_page < self.total_pages - 1

    def check_bounds(self, total_pages: int) -> None:
        if self.current_page < 0 or self.current_page > total_pages - 1:
            raise TableNotFoundError(
                f"Page {self.page_number} does not exist (total pages: {total_pages})"
            )

    def with_total_pages(self, total_pages: int) -> PaginationState:
        """Attach the page count, rejecting a current page outside of it."""
        self.check_bounds(total_pages)
        return replace(self, total_pages=total_pages)


def resolve_pagination(options: PaginationOptions, params) -> PaginationState:
    """Read the 1-based page number from the request and convert it to 0-based.

    Bounds against the page count are checked once the filtered count is known.
    """
    raw_page = params.get(options.param)
    if raw_page is None or str(raw_page).strip() == "":
        page = 1
    else:
        try:
            page = int(str(raw_page).strip())
        except ValueError as exc:
            raise TableNotFoundError(f"Invalid page: {raw_page}") from exc
        if page < 1:
            raise TableNotFoundError(f"Invalid page: {raw_page}")

    return PaginationState(
        param=options.param,
        items_per_page=options.items_per_page,
        current_page=page - 1,
        ul_class=options.ul_class,
        li_class=options.li_class,
        li_class_active=options.li_class_active,
        li_class_disabled=options.li_class_disabled,
    )
