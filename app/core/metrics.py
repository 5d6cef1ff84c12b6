"""Prometheus metrics for monitoring report generation."""

from contextlib import contextmanager
from time import time
from typing import Generator

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# =============================================================================
# Counters
# =============================================================================

reports_generated = Counter(
    "educademy_reports_generated_total",
    "Total reports generated",
    ["report_type", "format"],
)

report_failures = Counter(
    "educademy_report_failures_total",
    "Report generation failures",
    ["report_type", "format", "stage"],  # validation, fetch, render
)

audit_publish_failures = Counter(
    "educademy_audit_publish_failures_total",
    "Business events that could not be handed to the audit publisher",
)

rate_limited_requests = Counter(
    "educademy_rate_limited_requests_total",
    "Requests rejected by the rate limiter",
    ["path"],
)


# =============================================================================
# Histograms
# =============================================================================

report_generation_time = Histogram(
    "educademy_report_generation_seconds",
    "Report generation duration",
    ["report_type", "format"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

report_size_bytes = Histogram(
    "educademy_report_size_bytes",
    "Rendered report size",
    ["format"],
    buckets=(1e3, 1e4, 1e5, 1e6, 5e6, 2e7),
)


# =============================================================================
# Gauges
# =============================================================================

reports_in_progress = Gauge(
    "educademy_reports_in_progress",
    "Reports currently being generated",
)


# =============================================================================
# Helper Functions
# =============================================================================

def track_report_generated(report_type: str, report_format: str, size: int) -> None:
    """
    Record a successful report.

    Args:
        report_type: Report type value (e.g. 'users')
        report_format: Format value of the delivered artifact
        size: Artifact body size in bytes
    """
    reports_generated.labels(report_type=report_type, format=report_format).inc()
    report_size_bytes.labels(format=report_format).observe(size)


def track_report_failure(report_type: str, report_format: str, stage: str) -> None:
    report_failures.labels(report_type=report_type, format=report_format, stage=stage).inc()


@contextmanager
def track_report_generation_time(report_type: str, report_format: str) -> Generator[None, None, None]:
    """
    Context manager to track report generation duration.

    Example:
        with track_report_generation_time("users", "csv"):
            # Generate report
            pass
    """
    start_time = time()
    reports_in_progress.inc()
    try:
        yield
    finally:
        reports_in_progress.dec()
        duration = time() - start_time
        report_generation_time.labels(report_type=report_type, format=report_format).observe(duration)


# =============================================================================
# FastAPI Endpoint
# =============================================================================

metrics_router = APIRouter()


@metrics_router.get("/metrics")
def get_metrics() -> Response:
    """
    FastAPI endpoint to expose Prometheus metrics.

    Returns:
        Response with Prometheus metrics in text format
    """
    metrics_data = generate_latest()
    return Response(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
