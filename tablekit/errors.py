from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class TableConfigurationError(RuntimeError):
    """Raised when a table type is declared inconsistently.

    Configuration errors are detected while the table is built, never depend
    on request values, and are not recoverable by the caller.
    """


class TableNotFoundError(HTTPException):
    """Raised when the request points at a page or sort column that does not exist."""

    def __init__(self, detail: str = "Page not found") -> None:
        super().__init__(status_code=404, detail=detail)


class FilterValidationError(ValueError):
    """Raised when a request filter value cannot be coerced to the filter's type."""


def no_such_column(column_name: str) -> TableConfigurationError:
    return TableConfigurationError(f"Column '{column_name}' does not exist")


def no_sortable_column() -> TableConfigurationError:
    return TableConfigurationError("Table has no sortable column")


def _error_payload(code: str, message: str, details: object, request_id: str | None):
    return {"code": code, "message": message, "details": details, "request_id": request_id}


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    return str(rid) if rid else "unknown"


def register_error_handlers(app) -> None:
    async def _handle_http_exception(request: Request, status_code: int, detail: object):
        code = f"http_{status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=status_code,
            content=_error_payload(code, message, details, _request_id(request)),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return await _handle_http_exception(request, exc.status_code, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if getattr(exc, "detail", None) is not None else "Request failed"
        return await _handle_http_exception(request, exc.status_code, detail)

    @app.exception_handler(FilterValidationError)
    async def filter_validation_handler(request: Request, exc: FilterValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_payload("invalid_filter", str(exc), None, _request_id(request)),
        )

    @app.exception_handler(TableConfigurationError)
    async def table_configuration_handler(request: Request, exc: TableConfigurationError):
        logger.exception(
            "Table configuration error on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request)},
        )
        return JSONResponse(
            status_code=500,
            content=_error_payload(
                "table_configuration_error",
                "Table is not configured correctly",
                None,
                _request_id(request),
            ),
        )
