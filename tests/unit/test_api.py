"""Unit tests for API endpoints."""

import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError


# Note: client fixture is provided by conftest.py
# No need to redefine it here


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_check(self, client):
        """Test /health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "educademy-report-service"
        assert "environment" in data

    def test_readiness_check(self, client):
        """Test /health/ready pings the database."""
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"]["status"] == "ok"

    def test_readiness_check_database_down(self, client, db):
        """Test an unreachable database answers 503."""
        with patch.object(db, "execute", side_effect=OperationalError("SELECT 1", {}, Exception("gone"))):
            response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["database"]["status"] == "error"

    def test_request_id_header(self, client):
        """Test every response carries a request id."""
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36


class TestReportTypesEndpoint:
    """Test /reports/types."""

    def test_lists_types_and_formats(self, client):
        response = client.get("/reports/types")
        assert response.status_code == 200
        data = response.json()
        assert data["reportTypes"] == [
            "users", "courses", "payments", "enrollments", "analytics", "system", "comprehensive",
        ]
        assert {"format": "pdf", "mimeType": "application/pdf"} in data["formats"]
        assert len(data["formats"]) == 6


class TestMetricsEndpoint:
    """Test Prometheus endpoint."""

    def test_metrics_exposed(self, client):
        client.post("/reports/generate", json={"reportType": "users"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "educademy_reports_generated_total" in response.text


class TestAPIDocumentation:
    """Test API documentation endpoints."""

    def test_openapi_schema(self, client):
        """Test OpenAPI schema is available."""
        response = client.get("/openapi.json")
        assert response.status_code == 200
        schema = response.json()
        assert schema["info"]["title"] == "Educademy Report Service"
        assert "/reports/generate" in schema["paths"]

    @pytest.mark.parametrize("path", ["/docs"])
    def test_docs_endpoint(self, client, path):
        """Test /docs endpoint is accessible."""
        response = client.get(path)
        assert response.status_code == 200
