"""
Kakao Login API

FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from kakao_login.config import settings
from kakao_login.database import check_connection, create_all, describe_database
from kakao_login.dependencies.auth import get_session_store
from kakao_login.exceptions import LoginServiceError
from kakao_login.services.session_store import DatabaseSessionStore

# Import observability modules
from kakao_login.logging_config import configure_logging
from kakao_login.middleware.logging import LoggingMiddleware
from kakao_login.routes.metrics import router as metrics_router
from kakao_login.sentry_config import capture_exception, configure_sentry

# Import route modules
from kakao_login.routes.auth import router as auth_router
from kakao_login.routes.pages import router as pages_router
from kakao_login.routes.users import router as users_router

logger = structlog.get_logger()

API_ENDPOINTS = {
    "auth": {
        "GET /api/auth/kakao": "Kakao consent URL",
        "GET /api/auth/kakao/callback": "Kakao login callback",
        "POST /api/auth/logout": "Log out",
        "GET /api/auth/user": "Current user",
    },
    "users": {
        "GET /api/users": "All users",
        "GET /api/users/{user_id}": "One user",
        "DELETE /api/users/{user_id}": "Delete user",
    },
    "system": {
        "GET /api": "API index",
        "GET /health": "Liveness",
        "GET /api/db/status": "Database status",
        "GET /metrics": "Prometheus metrics",
    },
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare tables when the database is reachable; otherwise run session-only."""
    logger.info(
        "kakao_config",
        client_id=settings.KAKAO_CLIENT_ID,
        client_secret_set=bool(settings.KAKAO_CLIENT_SECRET),
        redirect_uri=settings.KAKAO_REDIRECT_URI,
        session_backend=settings.SESSION_BACKEND,
    )

    app.state.database_ready = await check_connection()
    if app.state.database_ready:
        await create_all()
        store = get_session_store()
        if isinstance(store, DatabaseSessionStore):
            purged = await store.purge_expired()
            logger.info("expired_sessions_purged", count=purged)
        logger.info("database_ready", **describe_database())
    else:
        logger.warning("database_unavailable", mode="session-only", **describe_database())

    yield


async def handle_login_service_error(request: Request, exc: LoginServiceError) -> JSONResponse:
    """Render LoginServiceError subclasses as {success: false, error, code}."""
    if exc.status_code >= 500:
        logger.error("request_error", route=request.url.path, error_code=exc.code, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=not settings.is_production),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes list the available endpoints; other HTTP errors keep their status."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {
            "success": False,
            "error": "The requested endpoint does not exist.",
            "code": "endpoint_not_found",
            "availableEndpoints": [
                f"{endpoint} - {description}"
                for group in API_ENDPOINTS.values()
                for endpoint, description in group.items()
            ],
        }
    else:
        content = {"success": False, "error": str(exc.detail), "code": "http_error"}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500 for anything outside the LoginServiceError taxonomy."""
    logger.error("unhandled_error", route=request.url.path, error=repr(exc))
    capture_exception(exc)
    content = {"success": False, "error": "Internal server error.", "code": "internal_error"}
    if not settings.is_production:
        content["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    # Initialize logging first
    configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

    # Initialize Sentry (if SENTRY_DSN is set)
    configure_sentry()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Kakao OAuth login with server-side sessions and a persisted user directory",
        lifespan=lifespan,
    )

    app.add_exception_handler(LoginServiceError, handle_login_service_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Innermost: sees request.state populated by routes
    app.add_middleware(LoggingMiddleware)

    # The cookie only carries the opaque session id; flags are identical for every route
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site=settings.SESSION_SAME_SITE,
        https_only=settings.SESSION_HTTPS_ONLY,
    )

    # Add CORS middleware to allow the frontend to send cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.include_router(metrics_router)
    app.include_router(auth_router)
    app.include_router(pages_router)
    app.include_router(users_router)

    @app.get("/")
    async def root():
        """Service banner."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Liveness check."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.APP_NAME,
        }

    @app.get("/api")
    async def api_index():
        """Endpoint index for frontend developers."""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "endpoints": API_ENDPOINTS,
        }

    return app


app = create_app()
