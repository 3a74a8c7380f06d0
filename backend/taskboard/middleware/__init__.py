"""
Taskboard Backend — Middleware Package
========================================

Middleware Chain (execution order on the way in):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Logging measures everything below it, including the exception handlers

The order is reversed for responses: the logger sees the final status code
and the Request ID middleware stamps X-Request-ID last.
"""

from taskboard.middleware.logging import RequestLoggingMiddleware
from taskboard.middleware.request_id import RequestIDMiddleware, request_id_var

__all__ = ["RequestIDMiddleware", "RequestLoggingMiddleware", "request_id_var"]
