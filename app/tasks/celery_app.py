"""Celery application for the business audit trail.

The web process only enqueues; a worker started with
``celery -A app.tasks.celery_app worker -Q audit`` persists the events.
"""

from celery import Celery

from ..config import settings

celery_app = Celery(
    "educademy_reports",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.audit_tasks"],
)

celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_routes={"app.tasks.audit_tasks.*": {"queue": settings.audit_queue}},
    task_default_queue=settings.audit_queue,
    # Redelivered if the worker dies mid-insert
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_ignore_result=True,
    task_time_limit=60,
    task_soft_time_limit=45,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)
