from __future__ import annotations

import hmac
from typing import Any, Dict, Optional

import jwt

from app.core.config import settings


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
    )


def verify_internal_secret(candidate: Optional[str]) -> bool:
    expected = settings.internal_secret_key
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate, expected)


__all__ = [
    "decode_token",
    "verify_internal_secret",
]
