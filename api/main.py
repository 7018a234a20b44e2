"""FastAPI application factory and main entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.config import APP_VERSION, get_settings
from api.exceptions import InternalError, SeoAuditError
from api.logging import setup_logging
from api.metrics import record_error
from api.sentry import capture_exception, init_sentry

# Initialize logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info(
        "api_starting",
        env=settings.env,
        debug=settings.debug,
        version=APP_VERSION,
        perplexity_configured=settings.perplexity_configured,
        dataforseo_configured=settings.dataforseo_configured,
    )
    init_sentry()

    yield

    logger.info("api_stopping")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SEO Live Audit",
        description="Aggregate SERP research, AI analysis and SEO data into one audit report",
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Middleware (order matters - first added = last executed)
    from api.metrics import MetricsMiddleware
    from api.middleware import LoggingMiddleware, RequestIDMiddleware

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # CORS must be last (first to process)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from api.metrics import router as metrics_router
    from api.routers import audit, health

    app.include_router(health.router, prefix="/api")
    app.include_router(audit.router, prefix="/api")
    app.include_router(metrics_router)

    return app


def _error_content(code: str, message: str, details: dict | None = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            **({"details": details} if details else {}),
        }
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(SeoAuditError)
    async def audit_error_handler(request: Request, exc: SeoAuditError) -> ORJSONResponse:
        """Handle application exceptions."""
        if isinstance(exc, InternalError):
            logger.error(
                "internal_error",
                error_code=exc.code,
                message=exc.message,
                path=request.url.path,
            )
            capture_exception(exc)
        else:
            logger.warning(
                "application_error",
                error_code=exc.code,
                message=exc.message,
                path=request.url.path,
            )
        record_error(exc.code, request.url.path)
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_content(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle malformed request bodies as invalid requests."""
        errors = exc.errors()
        first_error = errors[0] if errors else {"msg": "Validation error"}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        logger.warning("validation_error", path=request.url.path, field=field or None)
        record_error("invalid_request", request.url.path)
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_content(
                "invalid_request",
                str(first_error.get("msg", "Validation error")),
                {"field": field} if field else None,
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        """Handle unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        capture_exception(exc)
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_content("internal_error", "An unexpected error occurred"),
        )


app = create_app()
