"""Main FastAPI application for the referral rewards API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from sacrewards import __version__
from sacrewards.api.rate_limit import configure_limiter
from sacrewards.api.v1.admin import router as admin_router
from sacrewards.api.v1.auth import router as auth_router
from sacrewards.api.v1.bank_details import router as bank_details_router
from sacrewards.api.v1.referrals import router as referrals_router
from sacrewards.logging_config import configure_logging, get_logger
from sacrewards.settings import Settings, check_settings, settings as default_settings
from sacrewards.storage.base import DuplicateRecordError, Storage, StorageError
from sacrewards.storage.db import Database
from sacrewards.storage.sql import SqlStorage

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent clickjacking - don't allow embedding in iframes
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer Policy - don't leak URLs to other sites
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("app_starting", env=app.state.settings.env)

    app.state.storage.create_tables()

    yield

    # Shutdown
    app.state.storage.close()
    logger.info("app_shutting_down")


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(DuplicateRecordError)
    async def duplicate_record_handler(request: Request, exc: DuplicateRecordError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": f"Duplicate value for {exc.field}"},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_failure", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Too many requests. Please try again later."},
        )


def create_app(config: Settings | None = None, storage: Storage | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Settings to use instead of the environment-loaded ones
        storage: Persistence handle; built from ``config.database_url`` if omitted

    Returns:
        Configured FastAPI app
    """
    config = config or default_settings
    check_settings(config)
    configure_logging(config)

    if storage is None:
        storage = SqlStorage(Database(config.database_url, echo=config.database_echo))

    # Hide API docs in production
    is_production = config.is_production

    app = FastAPI(
        title="SAC Rewards API",
        description="Referral rewards for home-appliance customers",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.storage = storage

    app.add_middleware(SecurityHeadersMiddleware)

    allowed_origins = [
        origin.strip()
        for origin in config.allowed_origins.split(",")
        if origin.strip()
    ]
    # Credentials (the session cookie) never go to a wildcard origin in production
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        max_age=3600,
    )

    # Login and register are limited in production only
    app.state.limiter = configure_limiter(config)
    _register_exception_handlers(app)

    app.include_router(auth_router, prefix="/api")
    app.include_router(bank_details_router, prefix="/api")
    app.include_router(referrals_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "env": config.env,
        }

    return app
