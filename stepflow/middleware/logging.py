# stepflow/middleware/logging.py
from __future__ import annotations

import time
from typing import Dict, Mapping, Optional, Tuple

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from stepflow.core.config import settings
from stepflow.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

HEALTH_PATHS = ("/health", "/health/live", "/health/ready")


def skipped_paths(api_prefix: str) -> Tuple[str, ...]:
    """Paths polled by probes and scrapers, which are not logged."""
    return tuple(f"{api_prefix}{path}" for path in HEALTH_PATHS) + ("/metrics",)


SKIPPED_PATHS = skipped_paths(settings.api_prefix)

SENSITIVE_HEADERS = (
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "token",
    "secret",
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        request_id = getattr(request.state, "request_id", None)

        self._log_request(request, request_id)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request.exception",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                response_time_ms=(time.perf_counter() - start_time) * 1000,
                exception_type=type(e).__name__,
                exception_message=str(e),
            )
            raise

        response_time = time.perf_counter() - start_time
        response.headers["X-Response-Time"] = f"{response_time:.3f}"

        self._log_response(request, response, response_time, request_id)

        return response

    def _log_request(self, request: Request, request_id: Optional[str]) -> None:
        if request.url.path in SKIPPED_PATHS:
            return

        logger.info(
            "request.received",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params) if request.query_params else None,
            client_ip=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent", "unknown"),
            headers=filter_headers(request.headers),
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        response_time: float,
        request_id: Optional[str],
    ) -> None:
        if request.url.path in SKIPPED_PATHS:
            return

        status_code = response.status_code
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "response_time_ms": response_time * 1000,
        }

        if 400 <= status_code < 500:
            log_data["error_type"] = "client_error"
        elif status_code >= 500:
            log_data["error_type"] = "server_error"

        if status_code >= 400:
            logger.warning("response.sent", **log_data)
        else:
            logger.info("response.sent", **log_data)


def filter_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Filter sensitive headers from logs."""
    filtered = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_HEADERS):
            filtered[key] = "[REDACTED]"
        else:
            filtered[key] = value
    return filtered
