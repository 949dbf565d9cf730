"""FastAPI application entry point.

Creates and configures the WhutMovie REST API: routers, the coarse
``/admin`` cookie gate, error envelopes, CORS and Prometheus metrics.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.database import get_engine
from src.api.dependencies.auth import LoginRedirect
from src.api.middleware.admin_gate import AdminGateMiddleware
from src.api.routers import admin, categories, genres, movies, pages
from src.api.schemas import DatabaseComponentHealth, HealthResponse
from src.monitoring.middleware import PrometheusMiddleware, mount_metrics
from src.services.errors import ServiceError
from src.settings import settings
from src.utils.logger import setup_logger

logger = setup_logger("api.main")

UNPROCESSABLE = 422

# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Validates database connection on startup.

    Args:
        _app: FastAPI application instance.

    Yields:
        None after startup tasks complete.
    """
    _verify_database_connection()
    logger.info(f"WhutMovie API started ({settings.environment})")
    yield


def _verify_database_connection() -> None:
    """Verify database is accessible on startup."""
    from sqlalchemy import text

    engine = get_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


# =============================================================================
# ERROR HANDLERS
# =============================================================================


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _login_redirect_handler(_request: Request, exc: LoginRedirect) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return _error(exc.status_code, exc.message, **exc.extra)


async def _http_error_handler(
    _request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    _request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report the first validation problem as a readable message."""
    errors = exc.errors()
    if not errors:
        return _error(UNPROCESSABLE, "Invalid request")
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return _error(
        UNPROCESSABLE,
        f"{location}: {message}" if location else message,
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and answer with a detail-free 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def _register_error_handlers(app: FastAPI) -> None:
    """Render every failure as an ``{"error": ...}`` envelope.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(LoginRedirect, _login_redirect_handler)
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance.
    """
    app = FastAPI(
        title=settings.api.title,
        version=settings.api.version,
        description="REST API for WhutMovie curated movie lists",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    _configure_cors(app)
    app.add_middleware(AdminGateMiddleware)
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)
    _register_error_handlers(app)
    _register_routers(app)
    app.add_api_route(
        "/api/health",
        health_check,
        methods=["GET"],
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="Verify API is running and the database is reachable.",
    )
    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
        expose_headers=["X-Invalidated-Paths"],
    )


def _register_routers(app: FastAPI) -> None:
    """Register API routers.

    Args:
        app: FastAPI application instance.
    """
    app.include_router(admin.router, prefix="/api")
    app.include_router(movies.router, prefix="/api")
    app.include_router(genres.router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(pages.public_pages)
    app.include_router(pages.admin_pages)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================


def health_check() -> HealthResponse:
    """Health check endpoint (no authentication required).

    Returns:
        API health status with version and database details.
    """
    database = _check_database()
    return HealthResponse(
        status="healthy" if database.connected else "degraded",
        version=settings.api.version,
        database=database,
    )


def _check_database() -> DatabaseComponentHealth:
    """Check database connection status."""
    from sqlalchemy import text as sa_text
    from sqlalchemy.exc import SQLAlchemyError

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(sa_text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return DatabaseComponentHealth(connected=False)
    pool = engine.pool
    pool_available = pool.checkedin() if hasattr(pool, "checkedin") else None
    return DatabaseComponentHealth(connected=True, pool_available=pool_available)


app = create_app()
