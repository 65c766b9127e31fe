"""FastAPI application entry point."""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .auth import router as auth_router
from .config import get_settings
from .database import engine
from .errors import CatalogError, InternalFailureError, InvalidInputError, UnauthorizedError
from .routers.videos import router as videos_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CineStream Catalog Backend", version="0.1.0")
app.include_router(auth_router)
app.include_router(videos_router)


@app.on_event("startup")
async def on_startup() -> None:
    """Ensure database tables exist before serving requests."""

    if settings.uses_default_secret:
        logger.warning("SECRET_KEY is not set; tokens are signed with the development default")

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("CineStream backend started")


def _error_response(error: CatalogError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, UnauthorizedError) else None
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.to_dict()},
        headers=headers,
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid field in the same shape as InvalidInputError."""

    errors = exc.errors()
    if not errors:
        return _error_response(InvalidInputError("Invalid request"))
    first = errors[0]
    # drop the leading "body"/"query"/"path" marker
    location = [str(part) for part in first.get("loc", ())[1:]]
    return _error_response(InvalidInputError(first.get("msg", "Invalid value"), field=".".join(location) or None))


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(InternalFailureError())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(InternalFailureError())


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple readiness probe for uptime checks."""

    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
