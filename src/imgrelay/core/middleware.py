"""Middleware for HTTP error logging."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from imgrelay.core.config import settings
from imgrelay.core.logging import client_id_context

logger = logging.getLogger(__name__)


def get_client_id(request: Request) -> str:
    """Return the rate-limit bucket for a request.

    All clients without the configured address header share the
    ``"unknown"`` bucket.
    """
    return request.headers.get(settings.CLIENT_IP_HEADER) or "unknown"


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure all HTTP errors are logged.

    - 4xx responses: logged at WARN level
    - 5xx responses: logged at ERROR level
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log errors.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            HTTP response
        """
        start_time = time.time()

        client_id = get_client_id(request)
        token = client_id_context.set(client_id)
        try:
            response = await call_next(request)
        finally:
            client_id_context.reset(token)

        duration_ms = (time.time() - start_time) * 1000
        details = {
            "http_status": response.status_code,
            "method": request.method,
            "path": request.url.path,
            "client_id": client_id,
            "duration_ms": duration_ms,
        }

        if 400 <= response.status_code < 500:
            logger.warning("Client error response", extra=details)
        elif response.status_code >= 500:
            logger.error("Server error response", extra=details)

        return response
