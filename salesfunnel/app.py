"""FastAPI application factory for the sales funnel manager."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .errors import ErrorKind, FieldError, FunnelError, ValidationFailed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite (local dev); other databases use Alembic migrations
    if "sqlite" in settings.database_url:
        from .database import create_tables
        await create_tables()
    yield


app = FastAPI(
    title=settings.app_title,
    description="Sales pipeline tracking: deals, derived revenue and funnel statistics.",
    lifespan=lifespan,
)
app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")


@app.exception_handler(FunnelError)
async def funnel_error_handler(request: Request, exc: FunnelError):
    logger.info(
        "%s on %s %s: %s", exc.kind.value, request.method, request.url.path, exc.message
    )
    body: dict = {"error": exc.message}
    if isinstance(exc, ValidationFailed):
        body["errors"] = [err.to_dict() for err in exc.errors]
    return JSONResponse(body, status_code=exc.status_code)


def _request_field_errors(exc: RequestValidationError) -> list[FieldError]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # drop the "body"/"path"/"query" prefix unless it is all there is
        name = ".".join(loc[1:]) or (loc[0] if loc else "request")
        kind = ErrorKind.MISSING_FIELD if err.get("type") == "missing" else ErrorKind.INVALID_FORMAT
        errors.append(FieldError(name, kind, str(err.get("msg", "Invalid value"))))
    return errors


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return await funnel_error_handler(request, ValidationFailed(_request_field_errors(exc)))


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# Import and register routers
from .routers import api, health, pages  # noqa: E402

app.include_router(api.router)
app.include_router(pages.router)
app.include_router(health.router)
