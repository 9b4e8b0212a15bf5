"""FastAPI application entry point.

Store Ratings API - users rate stores, owners read their ratings, admins manage both.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storeratings.errors import AppError
from storeratings.routes import api_router
from storeratings.schemas import ErrorDetail, ErrorResponse
from storeratings.settings import get_settings
from storeratings.stores.postgres import close_db, init_db, ping_db

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    await init_db()
    try:
        await ping_db()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database ping failed")

    yield

    # Shutdown
    await close_db()


def _error_response(status_code: int, code: str, message: str, detail: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _field_name(loc: tuple) -> str:
    """Turn a pydantic error location into the client-facing field name."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Store rating platform API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Domain errors: stable code, client-facing message."""
        return _error_response(exc.status_code, exc.code, exc.message, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report the first offending field and the violated constraint."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = _field_name(tuple(first.get("loc", ())))
        constraint = str(first.get("msg", "invalid"))
        return _error_response(
            400,
            "FIELD_CONSTRAINT",
            f"{field}: {constraint}",
            {"field": field, "constraint": constraint, "type": first.get("type")},
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storeratings.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
