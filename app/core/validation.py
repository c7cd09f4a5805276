from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import validation_error_from


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(schema: Type[ModelT], payload: Any) -> ModelT:
    """Parse an untyped payload or raise ``ValidationError`` listing every violation."""
    try:
        return schema.model_validate(payload if payload is not None else {})
    except PydanticValidationError as exc:
        raise validation_error_from(exc) from exc


__all__ = ["validate_payload"]
