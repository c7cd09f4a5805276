from __future__ import annotations

import json

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import settings
from flaia_bg_worker import main as worker_main
from flaia_bg_worker import notifications_worker


@pytest.fixture()
def dispatcher(monkeypatch):
    requests = []
    responses = []
    real_client = httpx.Client

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses.pop(0)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(notifications_worker.httpx, "Client", client_factory)
    monkeypatch.setattr(
        settings,
        "notification_dispatch_url_override",
        "https://api.flaia.test/api/v1/notifications/dispatch",
    )
    return requests, responses


def test_send_scheduled_posts_to_dispatcher(dispatcher) -> None:
    requests, responses = dispatcher
    responses.append(httpx.Response(200, json={"success": True, "messageId": "m-1"}))

    result = notifications_worker.send_scheduled("u1", "ar", "day2")

    assert result == {"success": True, "messageId": "m-1"}
    request = requests[0]
    assert str(request.url) == "https://api.flaia.test/api/v1/notifications/dispatch"
    assert request.headers["X-Internal-Secret"] == "test-internal-secret"
    assert json.loads(request.content) == {"userId": "u1", "language": "ar", "day": "day2"}


def test_send_scheduled_raises_on_dispatcher_error(dispatcher) -> None:
    _, responses = dispatcher
    responses.append(httpx.Response(500, json={"success": False, "error": "unavailable"}))

    with pytest.raises(httpx.HTTPStatusError):
        notifications_worker.send_scheduled("u1", "en", "day1")


class _FakeRedis:
    def __init__(self, reachable):
        self.reachable = reachable
        self.pinged = []

    def from_url(self, url):
        fake = self

        class _Connection:
            def ping(self):
                fake.pinged.append(url)
                if url not in fake.reachable:
                    raise RedisConnectionError("refused")
                return True

        return _Connection()


def test_broker_falls_back_to_local_redis(monkeypatch) -> None:
    monkeypatch.setattr(settings, "celery_broker_url", "redis://broker.internal:6379/0")
    fake = _FakeRedis({worker_main.LOCAL_BROKER_URL})
    monkeypatch.setattr(worker_main, "Redis", fake)

    assert worker_main.choose_broker_url() == worker_main.LOCAL_BROKER_URL
    assert fake.pinged == ["redis://broker.internal:6379/0", worker_main.LOCAL_BROKER_URL]


def test_configured_broker_is_preferred(monkeypatch) -> None:
    monkeypatch.setattr(settings, "celery_broker_url", "redis://broker.internal:6379/0")
    fake = _FakeRedis({"redis://broker.internal:6379/0"})
    monkeypatch.setattr(worker_main, "Redis", fake)

    assert worker_main.choose_broker_url() == "redis://broker.internal:6379/0"
