"""
Taskboard Backend — Error Classifier & Exception Handlers
===========================================================

What:  Maps every failure to an HTTP status and a response body.
How:   `classify()` is a pure function; the FastAPI exception handlers only
       log, call it, and wrap the result in a JSONResponse. No route, service
       or repository assigns a status code.

Classification:
    ValidationFailure / UniqueConstraintFailure  → 422  [{field, message}, ...]
    pydantic ValidationError                     → 422  [{field, message}, ...]
    FastAPI RequestValidationError               → 422  [{field, message}, ...]
    IntegrityError (UNIQUE/CHECK/NOT NULL/FK)    → 422  [{field, message}]
    UnsupportedMediaType                         → 415  {message, error, requestId}
    NotFoundError                                → 404  {message, error, requestId}
    anything else                                → 500  {message, error, requestId}

A rule violation produces the same body whether the API schema, the ORM
`@validates` hook or the database CHECK constraint caught it.

Security: 500 responses never carry exception text; the traceback is logged
server-side with the request ID.
"""

import logging
import re
from typing import Any, Dict, List, Sequence, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from taskboard.exceptions import (
    NotFoundError,
    TaskboardError,
    UniqueConstraintFailure,
    UnsupportedMediaType,
    ValidationFailure,
)
from taskboard.middleware.request_id import request_id_var
from taskboard.validation import MESSAGES

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

# Column names that differ from the names clients send and receive
PUBLIC_FIELD_NAMES = {
    "user_id": "userId",
    "password_hash": "password",
}

# ── Constraint-name parsing ───────────────────────────────────────────────
# Names come from the metadata naming convention in taskboard.database.
# PostgreSQL: ... violates unique constraint "uq_users_email"
#             ... violates check constraint "ck_users_tel"
#             ... violates not-null constraint ... column "body" ...
# SQLite:     UNIQUE constraint failed: users.email
#             CHECK constraint failed: ck_users_tel
#             NOT NULL constraint failed: tasks.body
_NAMED_CONSTRAINT = re.compile(r"\b(?:uq|ck)_(?:users|tasks)_([a-z_]+)")
_PRIMARY_KEY = re.compile(r"\bpk_(?:users|tasks)\b")
_QUALIFIED_COLUMN = re.compile(r"\b(?:users|tasks)\.([a-z_]+)")
_PG_COLUMN = re.compile(r'column "([a-z_]+)"')


def public_field_name(column: str) -> str:
    return PUBLIC_FIELD_NAMES.get(column, column)


def _integrity_column(message: str) -> str:
    if _PRIMARY_KEY.search(message):
        return "id"
    for pattern in (_NAMED_CONSTRAINT, _QUALIFIED_COLUMN, _PG_COLUMN):
        match = pattern.search(message)
        if match:
            return match.group(1)
    return ""


def classify_integrity_error(exc: IntegrityError) -> ValidationFailure:
    """
    Translate a database constraint violation into the equivalent
    application failure, naming the offending field.
    """
    message = str(exc.orig if exc.orig is not None else exc)
    lowered = message.lower()

    if "foreign key" in lowered:
        field = public_field_name("user_id")
        return ValidationFailure(
            message="Referenced user does not exist",
            field=field,
            context={"constraint": "foreign_key"},
        )

    column = _integrity_column(message)
    field = public_field_name(column)

    if "unique" in lowered or "duplicate key" in lowered:
        return UniqueConstraintFailure(field=field or "unknown")

    if "not null" in lowered or "not-null" in lowered:
        return ValidationFailure(message=f"{field or 'value'} is required", field=field)

    return ValidationFailure(
        message=MESSAGES.get(column, f"{field or 'value'} is invalid"),
        field=field,
    )


# Reported when the error concerns the request body as a whole (missing or
# malformed JSON) rather than one of its fields
REQUEST_BODY_FIELD = "requestBody"

# First `loc` element of a FastAPI RequestValidationError
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def _error_field(loc: Sequence[Any], from_request: bool) -> str:
    """
    Public field name for one pydantic error location.

    The field is the last string element of `loc` (the alias, e.g. `userId`);
    list indexes and JSON byte offsets are skipped. For request errors the
    leading location ("body", "query", ...) is not a field.
    """
    parts = list(loc)
    location = None
    if from_request and parts and parts[0] in _REQUEST_LOCATIONS:
        location = parts.pop(0)
    names = [part for part in parts if isinstance(part, str)]
    if names:
        return names[-1]
    if location == "body":
        return REQUEST_BODY_FIELD
    return location or ""


def _pydantic_field_errors(
    errors: Sequence[Dict[str, Any]], from_request: bool = False
) -> List[Dict[str, str]]:
    """
    Flatten pydantic error dicts to `{field, message}`.

    When a validator raised ValueError, its own text is used instead of
    pydantic's "Value error, ..." wrapper.
    """
    field_errors = []
    for error in errors:
        field = _error_field(error.get("loc") or (), from_request)
        ctx_error = (error.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else error.get("msg", "Invalid value")
        field_errors.append({"field": field, "message": message})
    return field_errors


def _message_body(message: str, error: str, request_id: str) -> Dict[str, str]:
    return {"message": message, "error": error, "requestId": request_id}


def classify(exc: Exception, request_id: str = "") -> Tuple[int, Any]:
    """
    Map an exception to `(status_code, payload)`.

    Pure: no logging and no I/O, so every branch is unit-testable.
    """
    if isinstance(exc, IntegrityError):
        exc = classify_integrity_error(exc)

    if isinstance(exc, ValidationFailure):
        return 422, list(exc.errors)
    if isinstance(exc, RequestValidationError):
        return 422, _pydantic_field_errors(exc.errors(), from_request=True)
    if isinstance(exc, ValidationError):
        return 422, _pydantic_field_errors(exc.errors())
    if isinstance(exc, UnsupportedMediaType):
        return 415, _message_body(exc.message, "unsupported_media_type", request_id)
    if isinstance(exc, NotFoundError):
        return 404, _message_body(exc.message, "not_found", request_id)

    return 500, _message_body(GENERIC_ERROR_MESSAGE, "internal_server_error", request_id)


def _respond(exc: Exception) -> JSONResponse:
    rid = request_id_var.get("")
    status_code, payload = classify(exc, request_id=rid)
    return JSONResponse(status_code=status_code, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that log each failure and delegate to `classify()`."""

    async def handle_client_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        status_code, payload = classify(exc, request_id=rid)
        # Field names only: pydantic's error text echoes the rejected input
        detail = [e["field"] for e in payload] if isinstance(payload, list) else payload["message"]
        logger.warning(
            "[%s] %s on %s (%d): %s", rid, type(exc).__name__, request.url.path, status_code, detail
        )
        return JSONResponse(status_code=status_code, content=payload)

    async def handle_integrity_error(request: Request, exc: IntegrityError):
        rid = request_id_var.get("")
        # Only the driver message; the statement parameters may include a password hash
        logger.warning("[%s] Constraint violation: %s", rid, exc.orig)
        return _respond(exc)

    async def handle_taskboard_error(request: Request, exc: TaskboardError):
        # Only reached by subclasses without a 4xx mapping (FileStorageError)
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return _respond(exc)

    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _respond(exc)

    for exc_class in (
        ValidationFailure,
        UnsupportedMediaType,
        NotFoundError,
        ValidationError,
        RequestValidationError,
    ):
        app.add_exception_handler(exc_class, handle_client_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(TaskboardError, handle_taskboard_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
