"""
Request correlation middleware.

Accepts or generates X-Request-ID, echoes it on the response and binds it
to the logging context. The actor context starts empty for every request;
get_current_user fills it in.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from wikiflow.logging_config import actor_id_var, get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log slow or failed workflow calls."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        request_token = request_id_var.set(request_id)
        actor_token = actor_id_var.set(None)
        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            if response.status_code == 503:
                # Storage was unavailable; the handler already logged the cause
                logger.warning("Request failed on storage", extra=fields)
            elif duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)
            return response
        finally:
            actor_id_var.reset(actor_token)
            request_id_var.reset(request_token)
