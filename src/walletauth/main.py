"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from walletauth import __version__
from walletauth.api.v1 import api_router
from walletauth.core.config import get_settings
from walletauth.core.logging import configure_logging
from walletauth.infrastructure.database import get_async_engine, init_models
from walletauth.services.auth import (
    ChallengeInvalidOrExpired,
    InvalidAddress,
    SignatureMismatch,
    WalletAuthError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup/shutdown events."""
    # Startup
    settings = get_settings()
    settings.require_production_secret()
    app.state.settings = settings

    uses_database = settings.auth_store_backend == "database"
    if uses_database and settings.db_create_tables:
        await init_models(get_async_engine())

    logger.info(
        f"{settings.app_name} {__version__} started "
        f"(environment={settings.environment}, store={settings.auth_store_backend})"
    )

    yield

    # Shutdown
    if uses_database:
        await get_async_engine().dispose()


async def wallet_auth_error_handler(
    request: Request, exc: WalletAuthError
) -> JSONResponse:
    """Render authentication errors as {error, detail}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


# Body field -> error raised when the field fails validation, in precedence order
VALIDATION_ERRORS: tuple[tuple[str, type[WalletAuthError]], ...] = (
    ("wallet_address", InvalidAddress),
    ("signature", SignatureMismatch),
    ("nonce", ChallengeInvalidOrExpired),
)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed request bodies through the authentication taxonomy.

    Validation diagnostics are logged, never returned. Errors not tied to a
    known field (missing or non-JSON body) count as an invalid address, since
    every authentication request carries one.
    """
    failed_fields = {loc for error in exc.errors() for loc in error.get("loc", ())}
    logger.info(
        f"Rejected malformed request to {request.url.path}: "
        f"{sorted(str(loc) for loc in failed_fields)}"
    )

    error_cls: type[WalletAuthError] = InvalidAddress
    for field, candidate in VALIDATION_ERRORS:
        if field in failed_fields:
            error_cls = candidate
            break

    return await wallet_auth_error_handler(request, error_cls())


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Wallet challenge-response authentication API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalletAuthError, wallet_auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all application routes."""
    settings = get_settings()

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


# Create application instance
app = create_app()
