from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generator, List, Optional

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["INTERNAL_SECRET_KEY"] = "test-internal-secret"
os.environ["ADMIN_EMAILS"] = "Admin@Flaia.app"
os.environ["PUBLIC_APP_URL"] = "https://flaia.test"

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.ai.client import InlineImage, ModelResult
from app.core.ai.context import AIContext
from app.core.ai.model_config import AIModelConfig
from app.core.config import settings
from app.core.dependencies import (
    get_ai_context,
    get_db,
    get_entitlement_client,
    get_push_client,
)
from app.core.promocodes.revenuecat import GrantResult
from app.database.base import Base
from app.main import app


class StubTransport:
    def __init__(self, data: Any = None, *, text: Optional[str] = None, usage=None) -> None:
        self.data = data
        self.text = text
        self.usage = usage or {"promptTokenCount": 10, "candidatesTokenCount": 20, "totalTokenCount": 30}
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def generate(self, prompt, response_schema, config, *, image: Optional[InlineImage] = None) -> ModelResult:
        self.calls.append({"prompt": prompt, "schema": response_schema, "image": image})
        if self.error is not None:
            raise self.error
        text = self.text if self.text is not None else json.dumps(self.data)
        return ModelResult(text=text, usage=dict(self.usage))


class StubPromptLogger:
    def __init__(self, log_id: Optional[str] = "log-1") -> None:
        self.log_id = log_id
        self.prompts: List[Any] = []
        self.errors: List[Any] = []
        self.usage: List[Any] = []

    def log_prompt(self, record) -> Optional[str]:
        self.prompts.append(record)
        return self.log_id

    def log_error(self, record) -> None:
        self.errors.append(record)

    def record_usage(self, user_id, token_usage) -> None:
        self.usage.append((user_id, dict(token_usage)))


class StubEntitlementClient:
    def __init__(self, *, succeed: bool = True) -> None:
        self.succeed = succeed
        self.grants: List[tuple] = []
        self.revokes: List[tuple] = []
        self.on_grant = None

    def grant_promotional(self, app_user_id: str, entitlement_id: str, duration: str) -> GrantResult:
        self.grants.append((app_user_id, entitlement_id, duration))
        if self.on_grant is not None:
            self.on_grant()
        if not self.succeed:
            return GrantResult(success=False, error="RevenueCat API error: 500 - boom")
        return GrantResult(success=True, grant_id=app_user_id)

    def revoke_promotional(self, app_user_id: str, entitlement_id: str) -> GrantResult:
        self.revokes.append((app_user_id, entitlement_id))
        return GrantResult(success=True, grant_id=app_user_id)


class StubPushClient:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def send(self, *, token: str, title: str, body: str, data=None) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return f"projects/flaia/messages/{len(self.sent)}"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)


@pytest.fixture()
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture()
def prompt_logger() -> StubPromptLogger:
    return StubPromptLogger()


@pytest.fixture()
def ai_context(transport, prompt_logger) -> AIContext:
    return AIContext(transport=transport, config=AIModelConfig(), prompt_logger=prompt_logger)


@pytest.fixture()
def entitlement_client() -> StubEntitlementClient:
    return StubEntitlementClient()


@pytest.fixture()
def push_client() -> StubPushClient:
    return StubPushClient()


@pytest.fixture()
def client(session_factory, ai_context, entitlement_client, push_client) -> Generator[TestClient, None, None]:
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_ai_context] = lambda: ai_context
    app.dependency_overrides[get_entitlement_client] = lambda: entitlement_client
    app.dependency_overrides[get_push_client] = lambda: push_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create_access_token(user_id: str, email: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=60)).timestamp()),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: str = "u1", email: Optional[str] = None) -> Dict[str, str]:
    token = create_access_token(user_id, email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user_headers() -> Dict[str, str]:
    return auth_headers("u1", "traveler@example.com")


@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return auth_headers("admin-1", "admin@flaia.app")
