import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import init_models
from .domain.errors import StoreError
from .routers import canteens, reservations, students
from .routers.errors import status_for
from .utils.request_id import REQUEST_ID_HEADER, get_request_id, resolve_request_id, set_request_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if get_settings().create_tables:
        logger.info("creating missing tables")
        await init_models()
    yield


app = FastAPI(title="Canteen Reservation API", lifespan=lifespan)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = StoreError("An unexpected error occurred.")
    logger.error("store failure on %s %s (request_id=%s): %s", request.method, request.url.path, get_request_id(), exc)
    return JSONResponse(
        status_code=status_for(error),
        content={"detail": {"code": error.code, "message": error.message}},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.middleware("http")(request_id_middleware)
app.add_exception_handler(SQLAlchemyError, store_error_handler)

app.include_router(students.router)
app.include_router(canteens.router)
app.include_router(reservations.router)
