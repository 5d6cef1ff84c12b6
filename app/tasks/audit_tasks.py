"""Celery tasks for the business audit trail."""

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict
import logging

from ..config import settings
from ..core.database import SessionLocal
from ..models.audit import AuditLog

logger = logging.getLogger(__name__)


@shared_task(
    name="app.tasks.audit_tasks.record_business_event",
    acks_late=True,
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": settings.audit_task_max_retries},
)
def record_business_event(event: Dict[str, Any]) -> int:
    """
    Persist one business event as an audit log row.

    Args:
        event: BusinessEvent dumped to a JSON-compatible dict

    Returns:
        Audit log row id
    """
    db = SessionLocal()
    try:
        entry = AuditLog(
            operation=event["operation"],
            entity=event["entity"],
            actor_id=event.get("actor_id"),
            status=event.get("status", "SUCCESS"),
            request_id=event.get("request_id"),
            details=event.get("details") or {},
        )
        db.add(entry)
        db.commit()
        logger.info(
            f"Business operation {entry.operation} on {entry.entity} by {entry.actor_id}: {entry.status}",
            extra={"request_id": entry.request_id, "audit_log_id": entry.id},
        )
        return entry.id
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Failed to record {event.get('operation')} event, will retry", exc_info=True)
        raise
    finally:
        db.close()
