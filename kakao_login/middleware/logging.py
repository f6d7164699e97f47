"""
Logging middleware for request/response logging.

Logs all HTTP requests with timing and context, and feeds the HTTP metrics.
"""
import time
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from kakao_login.metrics import http_request_duration, http_requests_total

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and context.

    Adds: user_id (once a route resolved the session), route, duration_ms,
    status to every log. Query strings are never logged because the
    OAuth callback carries the authorization code there.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        route = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "request_failed",
                route=route,
                method=request.method,
                user_id=getattr(request.state, 'user_id', None),
                status_code=500,
                duration_ms=round(duration_ms, 2),
                error=str(e)
            )
            http_requests_total.labels(method=request.method, endpoint=route, status=500).inc()
            raise

        duration = time.time() - start_time
        # Route template (/api/users/{user_id}), falling back to the raw path
        endpoint = getattr(request.scope.get("route"), "path", route)

        logger.info(
            "request_completed",
            route=route,
            method=request.method,
            user_id=getattr(request.state, 'user_id', None),
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2)
        )
        http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        http_request_duration.labels(method=request.method, endpoint=endpoint).observe(duration)

        return response
