import logging
import uuid

from fastapi import FastAPI, Request

from tablekit.api.tables import router as tables_router
from tablekit.errors import register_error_handlers
from tablekit.logging import configure_logging

app = FastAPI(title="tablekit")
logger = logging.getLogger(__name__)
configure_logging()
register_error_handlers(app)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


app.include_router(tables_router)
