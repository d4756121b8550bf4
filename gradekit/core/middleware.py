"""HTTP middleware for request correlation and access logging.

Every response carries the request id (taken from the incoming header or
freshly generated) and the time spent serving it. The id is bound to the
logging context for the duration of the request so all records emitted
while handling it can be correlated.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from gradekit.core.config import settings
from gradekit.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id, time the request and echo both in headers.

    Args:
        request: Incoming request.
        call_next: Next middleware/route handler in the stack.

    Returns:
        The downstream response with the request id header and an
        ``X-Request-Duration-ms`` header added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
