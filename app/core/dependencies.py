from __future__ import annotations

from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.ai.client import AIProxyClient
from app.core.ai.context import AIContext
from app.core.ai.model_config import AIModelConfig
from app.core.ai.prompt_logger import PromptLogger
from app.core.config import settings
from app.core.errors import AuthenticationError, PermissionDeniedError
from app.core.notifications.fcm import FCMClient
from app.core.promocodes.revenuecat import RevenueCatClient
from app.core.security import decode_token, verify_internal_secret
from app.database.session import SessionLocal


@dataclass(frozen=True)
class CurrentUser:
    uid: str
    email: Optional[str] = None


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _parse_bearer(authorization: str) -> CurrentUser:
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise AuthenticationError("Invalid Authorization header")

    if scheme.lower() != "bearer":
        raise AuthenticationError("Bearer authorization scheme expected")

    try:
        payload = decode_token(token)
    except Exception:
        raise AuthenticationError("Invalid or expired access token")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    uid = payload.get("sub")
    if not isinstance(uid, str) or not uid:
        raise AuthenticationError("Invalid token payload")

    email = payload.get("email")
    return CurrentUser(uid=uid, email=email if isinstance(email, str) else None)


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> CurrentUser:
    if not authorization:
        raise AuthenticationError("Authentication required")
    return _parse_bearer(authorization)


def get_optional_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Optional[CurrentUser]:
    if not authorization:
        return None
    return _parse_bearer(authorization)


def get_current_admin(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if not user.email or user.email.lower() not in settings.admin_emails:
        raise PermissionDeniedError("Admin access required")
    return user


def require_internal_secret(
    x_internal_secret: str | None = Header(default=None, alias="X-Internal-Secret"),
) -> None:
    if not verify_internal_secret(x_internal_secret):
        raise AuthenticationError("Invalid internal secret")


def get_model_config() -> AIModelConfig:
    return AIModelConfig.from_settings(settings)


def get_ai_client() -> AIProxyClient:
    return AIProxyClient(
        url=settings.ai_proxy_url,
        api_key=settings.ai_proxy_api_key,
        timeout=settings.ai_proxy_timeout_seconds,
    )


def get_prompt_logger() -> PromptLogger:
    return PromptLogger(
        session_factory=SessionLocal,
        timeout=settings.prompt_log_timeout_seconds,
    )


def get_ai_context(
    client: AIProxyClient = Depends(get_ai_client),
    config: AIModelConfig = Depends(get_model_config),
    prompt_logger: PromptLogger = Depends(get_prompt_logger),
) -> AIContext:
    return AIContext(transport=client, config=config, prompt_logger=prompt_logger)


def get_entitlement_client() -> RevenueCatClient:
    return RevenueCatClient(
        base_url=settings.revenuecat_api_url,
        secret_key=settings.revenuecat_secret_key,
        timeout=settings.revenuecat_timeout_seconds,
    )


def get_push_client() -> FCMClient:
    return FCMClient(
        send_url=settings.fcm_send_url,
        server_key=settings.fcm_server_key,
        timeout=settings.fcm_timeout_seconds,
    )


__all__ = [
    "CurrentUser",
    "get_db",
    "get_current_user",
    "get_optional_user",
    "get_current_admin",
    "require_internal_secret",
    "get_model_config",
    "get_ai_client",
    "get_prompt_logger",
    "get_ai_context",
    "get_entitlement_client",
    "get_push_client",
]
