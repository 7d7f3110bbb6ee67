"""
Exception hierarchy for Diary Buddy.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Taxonomy
--------
StoreUnavailableError       storage unreachable / IO failure
ConstraintViolationError    malformed write (empty required field, ...)
GenerationUnavailableError  generation backend unreachable or erroring
MalformedResponseError      backend replied, but not with the expected JSON
SubmissionInProgressError   a chat submission is already being processed
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class DiaryBuddyException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StoreUnavailableError(DiaryBuddyException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(
            message=f"Record store unavailable during {operation}.",
            details={"operation": operation, "reason": reason} if reason else {"operation": operation},
        )


class ConstraintViolationError(DiaryBuddyException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "CONSTRAINT_VIOLATION"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )


class GenerationUnavailableError(DiaryBuddyException):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "GENERATION_UNAVAILABLE"

    def __init__(self, reason: str, status_code: int | None = None):
        details: dict[str, Any] = {"reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message="Generation backend is unavailable.", details=details)


class MalformedResponseError(DiaryBuddyException):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "MALFORMED_RESPONSE"

    def __init__(self, reason: str, raw: str | None = None):
        details: dict[str, Any] = {"reason": reason}
        if raw:
            details["raw"] = raw[:500]
        super().__init__(message="Generation backend returned a malformed response.", details=details)


class SubmissionInProgressError(DiaryBuddyException):
    http_status = status.HTTP_409_CONFLICT
    code = "SUBMISSION_IN_PROGRESS"

    def __init__(self):
        super().__init__(
            message="A message is already being processed. Wait for the reply before sending another.",
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def diarybuddy_exception_handler(request: Request, exc: DiaryBuddyException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
