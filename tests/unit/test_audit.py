"""Unit tests for business event publishing and persistence."""

import pytest
from unittest.mock import Mock, patch
from sqlalchemy.exc import OperationalError

from app.models import AuditLog
from app.schemas.report import BusinessEvent
from app.services.audit_service import CeleryAuditPublisher
from app.tasks.audit_tasks import record_business_event
from conftest import TestingSessionLocal


@pytest.fixture
def event():
    return BusinessEvent(
        operation="GENERATE_REPORT",
        entity="REPORT",
        actor_id="admin-1",
        request_id="req-1",
        details={"reportType": "users", "format": "pdf"},
    )


class TestCeleryAuditPublisher:
    """Test CeleryAuditPublisher."""

    def test_publish_enqueues_json_payload(self, event):
        """Test the event is handed to the task as a plain dict."""
        task = Mock()
        CeleryAuditPublisher(task=task).publish(event)

        payload = task.delay.call_args[0][0]
        assert payload["operation"] == "GENERATE_REPORT"
        assert payload["actor_id"] == "admin-1"
        assert payload["details"]["format"] == "pdf"

    def test_enqueue_failure_is_logged(self, event, caplog):
        """Test broker errors never propagate."""
        task = Mock()
        task.delay.side_effect = ConnectionError("broker unavailable")

        CeleryAuditPublisher(task=task).publish(event)

        assert "Failed to enqueue GENERATE_REPORT event" in caplog.text


class TestRecordBusinessEvent:
    """Test audit task."""

    def test_persists_audit_row(self, db, event):
        """Test the task writes one audit log row."""
        with patch("app.tasks.audit_tasks.SessionLocal", TestingSessionLocal):
            row_id = record_business_event(event.model_dump(mode="json"))

        entry = db.query(AuditLog).filter_by(id=row_id).one()
        assert entry.operation == "GENERATE_REPORT"
        assert entry.entity == "REPORT"
        assert entry.actor_id == "admin-1"
        assert entry.request_id == "req-1"
        assert entry.details == {"reportType": "users", "format": "pdf"}

    def test_database_error_rolls_back_and_raises(self, event):
        """Test database errors surface so the task can be retried."""
        session = Mock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        with patch("app.tasks.audit_tasks.SessionLocal", return_value=session):
            with pytest.raises(OperationalError):
                record_business_event(event.model_dump(mode="json"))

        session.rollback.assert_called_once()
        session.close.assert_called_once()
