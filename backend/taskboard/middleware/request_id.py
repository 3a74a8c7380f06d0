"""
Taskboard Backend — Request ID Middleware
===========================================

What:  Tags each request with a short ID, echoed in the X-Request-ID header.
How:   Reuses the client's X-Request-ID when present, else generates one; the
       value lives in a ContextVar for loggers and error handlers, and on
       `request.state.request_id` for route code.

Error responses other than 422 carry the same value as `requestId`, so a
client report can be matched to the server log line.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        # Not reset afterwards: the outermost 500 handler runs after this returns
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
