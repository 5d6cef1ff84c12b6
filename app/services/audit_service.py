"""Business event publishing."""

from typing import Protocol
import logging

from ..schemas.report import BusinessEvent

logger = logging.getLogger(__name__)


class AuditPublisher(Protocol):
    """Sink for business events. Publishing never blocks on persistence."""

    def publish(self, event: BusinessEvent) -> None:
        ...


class CeleryAuditPublisher:
    """Enqueues business events for the audit worker."""

    def __init__(self, task=None):
        if task is None:
            from ..tasks.celery_app import celery_app  # noqa: F401 binds shared tasks
            from ..tasks.audit_tasks import record_business_event
            task = record_business_event
        self.task = task

    def publish(self, event: BusinessEvent) -> None:
        try:
            self.task.delay(event.model_dump(mode="json"))
        except Exception as e:
            logger.error(
                f"Failed to enqueue {event.operation} event: {e}",
                extra={"request_id": event.request_id},
            )
            return
        logger.debug(f"Enqueued {event.operation} event on {event.entity}")
