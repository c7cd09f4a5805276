from .response import (
    APIError,
    ErrorPayload,
    StandardResponse,
    make_error_response,
    make_success_response,
)

__all__ = [
    "APIError",
    "ErrorPayload",
    "StandardResponse",
    "make_success_response",
    "make_error_response",
]
