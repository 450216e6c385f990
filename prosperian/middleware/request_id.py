# prosperian/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from prosperian.core.logging import bind_request_context, clear_request_context

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids in priority order.
INCOMING_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# W3C trace context: version-traceid-parentid-flags
TRACEPARENT = re.compile(r"^[0-9a-f]{2}-([0-9a-f]{32})-[0-9a-f]{16}-[0-9a-f]{2}$")


def request_id_from_headers(headers) -> Optional[str]:
    for header in INCOMING_ID_HEADERS:
        value = (headers.get(header) or "").strip()
        if value:
            return value[:128]

    match = TRACEPARENT.match((headers.get("traceparent") or "").strip().lower())
    if match:
        return match.group(1)
    return None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the log context and echoes it in the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_from_headers(request.headers) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_request_context(request_id, method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
