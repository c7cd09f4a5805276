from __future__ import annotations

import socket

from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import settings
from flaia_bg_worker.celery_app import celery_app
from flaia_bg_worker import notifications_worker  # noqa: F401  registers tasks


LOCAL_BROKER_URL = "redis://localhost:6379/0"


def choose_broker_url() -> str:
    """
    Use the configured broker when it answers, otherwise fall back to a local Redis.
    """
    primary = settings.celery_broker_url
    try:
        Redis.from_url(primary).ping()
        return primary
    except (RedisConnectionError, socket.gaierror):
        pass

    Redis.from_url(LOCAL_BROKER_URL).ping()
    return LOCAL_BROKER_URL


def main() -> None:
    celery_app.conf.broker_url = choose_broker_url()
    argv = [
        "worker",
        "--loglevel=info",
        "-Q",
        settings.notifications_queue,
        "-P",
        "solo",
    ]
    celery_app.worker_main(argv)


if __name__ == "__main__":
    main()
