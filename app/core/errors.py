from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.response import StandardResponse, make_error_response
from app.response.response import APIError


logger = logging.getLogger(__name__)


class FlaiaError(APIError):
    """Base of the error taxonomy.

    ``default_code`` is the platform code used by the typed-error endpoints
    (promo codes, food, notifications). The AI generation endpoints never
    raise these to the client; ``handle_ai_error`` turns them into a failure
    envelope with one of the ``*_ERROR`` codes instead.
    """

    default_code = "internal"
    http_code = 500
    envelope_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(
            code=code or self.default_code,
            http_code=self.http_code,
            message=message,
            details=details,
        )


class ValidationError(FlaiaError):
    default_code = "invalid-argument"
    http_code = 400
    envelope_code = "VALIDATION_ERROR"


class AuthenticationError(FlaiaError):
    default_code = "unauthenticated"
    http_code = 401
    envelope_code = "VALIDATION_ERROR"


class PermissionDeniedError(FlaiaError):
    default_code = "permission-denied"
    http_code = 403
    envelope_code = "VALIDATION_ERROR"


class NotFoundError(FlaiaError):
    default_code = "not-found"
    http_code = 404
    envelope_code = "INTERNAL_ERROR"


class PreconditionError(FlaiaError):
    default_code = "failed-precondition"
    http_code = 400
    envelope_code = "INTERNAL_ERROR"


class InternalError(FlaiaError):
    default_code = "internal"
    http_code = 500
    envelope_code = "INTERNAL_ERROR"


class ModelServiceError(FlaiaError):
    default_code = "unavailable"
    http_code = 502
    envelope_code = "AI_SERVICE_ERROR"


class EmptyResponseError(ModelServiceError):
    pass


class MalformedResponseError(ModelServiceError):
    envelope_code = "RESPONSE_PARSING_ERROR"


class SchemaViolationError(ModelServiceError):
    envelope_code = "RESPONSE_PARSING_ERROR"


_ENVELOPE_MESSAGES = {
    "VALIDATION_ERROR": "Invalid request data",
    "AI_SERVICE_ERROR": "AI service temporarily unavailable",
    "RESPONSE_PARSING_ERROR": "Invalid response from AI model",
}


def validation_error_from(exc: PydanticValidationError) -> ValidationError:
    """Collect every violated constraint, not just the first one."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return ValidationError("Invalid request data", details=details)


def handle_ai_error(exc: BaseException, function_name: str) -> StandardResponse:
    logger.error("%s error: %r", function_name, exc)

    if isinstance(exc, PydanticValidationError):
        exc = validation_error_from(exc)

    if isinstance(exc, FlaiaError):
        code = exc.envelope_code
        if code == "VALIDATION_ERROR":
            return make_error_response(
                code=code,
                message=_ENVELOPE_MESSAGES[code],
                details=exc.details,
            )
        if code in _ENVELOPE_MESSAGES:
            return make_error_response(code=code, message=_ENVELOPE_MESSAGES[code])
        return make_error_response(code=code, message=exc.message)

    return make_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
    )


__all__ = [
    "FlaiaError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "PreconditionError",
    "InternalError",
    "ModelServiceError",
    "EmptyResponseError",
    "MalformedResponseError",
    "SchemaViolationError",
    "validation_error_from",
    "handle_ai_error",
]
