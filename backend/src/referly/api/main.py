"""Main FastAPI application for Referly API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from referly import __version__
from referly.api.rate_limit import limiter
from referly.api.routers.admin import router as admin_router
from referly.api.routers.campaigns import router as campaigns_router
from referly.api.routers.notifications import router as notifications_router
from referly.api.routers.users import router as users_router
from referly.context import AppContext, build_context
from referly.errors import DependencyFailure, ReferlyError, ValidationError
from referly.logging_config import configure_logging, get_logger
from referly.settings import Settings, validate_settings

logger = get_logger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": code, "message": message},
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReferlyError)
    async def referly_error_handler(request: Request, exc: ReferlyError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.code, message=exc.message)
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        return _error_response(ValidationError.status_code, ValidationError.code, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        response = _error_response(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "error"),
            str(exc.detail),
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("database_error", path=request.url.path, error=str(exc))
        return _error_response(DependencyFailure.status_code, DependencyFailure.code, "Database unavailable")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return _error_response(429, "rate_limited", "Too many requests. Please try again later.")


def create_app(settings: Settings | None = None, context: AppContext | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Application settings (loaded from the environment when omitted)
        context: Prebuilt application context (built from settings when omitted)

    Returns:
        Configured FastAPI app
    """
    if context is not None:
        settings = context.settings
    settings = settings or Settings()
    validate_settings(settings)
    configure_logging(settings)
    context = context or build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("app_starting", env=settings.env)
        context.database.create_tables()
        if not settings.admin_configured:
            logger.warning("admin_not_configured")

        yield

        logger.info("app_shutting_down")
        context.close()

    # Hide API docs in production
    is_production = settings.is_production

    app = FastAPI(
        title="Referly API",
        description="Referral marketing backend: signups, referral rewards, campaigns and email",
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware - never allow wildcard in production
    allowed_origins = settings.origins_list
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    limiter.enabled = is_production
    app.state.limiter = limiter

    _register_error_handlers(app)

    app.include_router(users_router)
    app.include_router(admin_router)
    app.include_router(campaigns_router)
    app.include_router(notifications_router)

    @app.get("/health")
    def health_check():
        """Liveness plus a database round-trip."""
        database_ok = context.database.ping()
        return JSONResponse(
            status_code=200 if database_ok else 503,
            content={
                "status": "healthy" if database_ok else "degraded",
                "database": "ok" if database_ok else "unavailable",
                "version": __version__,
                "env": settings.env,
            },
        )

    return app
