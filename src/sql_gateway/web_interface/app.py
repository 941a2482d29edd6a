# src/sql_gateway/web_interface/app.py
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sql_gateway import __version__
from sql_gateway.config.logging_config import LoggingConfig
from sql_gateway.config.sql_config import SqlApiConfig
from sql_gateway.core.exceptions.custom_exceptions import RateLimitExceededError
from sql_gateway.core.responses import create_error_response
from sql_gateway.database.query_service import QueryService
from sql_gateway.security.rate_limiter import RateLimiter
from sql_gateway.web_interface.dependencies import build_query_service, enforce_api_rate_limit
from sql_gateway.web_interface.routes.sql_routes import router as sql_router

logger = logging.getLogger(__name__)


def create_app(config: Optional[SqlApiConfig] = None,
               query_service: Optional[QueryService] = None,
               configure_logging: bool = True) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config (Optional[SqlApiConfig]): SQL API settings, read from the environment when omitted
        query_service (Optional[QueryService]): Prebuilt query service, mostly for tests
        configure_logging (bool): Whether to apply ``LoggingConfig``

    Returns:
        FastAPI: Configured application
    """
    if configure_logging:
        LoggingConfig().configure()

    config = config or SqlApiConfig()
    query_service = query_service or build_query_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.query_service.check_database()
        yield
        app.state.query_service.close()

    app = FastAPI(
        title="SQL Gateway API",
        description="Read-only SQL query API for PostgreSQL",
        version=__version__,
        lifespan=lifespan
    )

    app.state.config = config
    app.state.query_service = query_service
    app.state.api_rate_limiter = RateLimiter(
        window_ms=config.api_rate_limit_window_ms,
        max_requests=config.api_rate_limit_max
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Root endpoint
    @app.get("/")
    async def root():
        return {"message": "Welcome to the SQL Gateway API"}

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "api_version": app.version,
            "database": "configured" if app.state.query_service.is_available else "not_configured"
        }

    app.include_router(
        sql_router,
        prefix="/api/sql",
        tags=["sql"],
        dependencies=[Depends(enforce_api_rate_limit)]
    )

    # Error handlers
    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exception_handler(request: Request, exc: RateLimitExceededError):
        logger.warning(f"API rate limit exceeded for {request.client.host if request.client else 'unknown'}")
        return JSONResponse(
            status_code=429,
            content=create_error_response(
                exc.get_user_message(), [], 429, "RATE_LIMIT_EXCEEDED", retryAfter=exc.retry_after
            ),
            headers=exc.headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(f"HTTP error: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(str(exc.detail), [], exc.status_code),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=create_error_response("Internal server error", [], 500, "INTERNAL_ERROR")
        )

    return app


app = create_app()
