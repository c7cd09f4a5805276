from __future__ import annotations

from celery import Celery

from app.core.config import settings


celery_app = Celery(
    "flaia_bg_worker",
    broker=settings.celery_broker_url,
)
celery_app.conf.task_default_queue = settings.notifications_queue

celery_app.autodiscover_tasks(
    packages=["flaia_bg_worker"],
)


__all__ = ["celery_app"]
