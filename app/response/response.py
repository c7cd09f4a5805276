from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class APIError(Exception):
    def __init__(
        self,
        code: str,
        http_code: int,
        message: str,
        *,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.http_code = http_code
        self.message = message
        self.details = details

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorPayload(BaseModel):
    code: str
    message: str
    timestamp: datetime = Field(default_factory=_utc_now)
    details: Optional[Any] = None


class StandardResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorPayload] = None
    metadata: Optional[Dict[str, Any]] = None


def make_success_response(
    data: Any,
    *,
    metadata: Optional[Dict[str, Any]] = None,
) -> StandardResponse:
    return StandardResponse(
        success=True,
        data=data,
        error=None,
        metadata=metadata or None,
    )


def make_error_response(
    code: str,
    message: str,
    *,
    details: Optional[Any] = None,
) -> StandardResponse:
    error = ErrorPayload(
        code=code,
        message=message,
        details=details,
    )
    return StandardResponse(
        success=False,
        data=None,
        error=error,
        metadata=None,
    )


__all__ = [
    "APIError",
    "ErrorPayload",
    "StandardResponse",
    "make_success_response",
    "make_error_response",
]
