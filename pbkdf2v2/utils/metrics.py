"""Prometheus metrics helpers and metric definitions."""

from __future__ import annotations

import time

from prometheus_client import (  # type: ignore
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)

from ..config import settings

NAMESPACE = settings.METRICS_NAMESPACE

CREDENTIAL_OPERATIONS = Counter(
    "credential_operations_total",
    "Credential codec operations by outcome",
    labelnames=("operation", "outcome"),
    namespace=NAMESPACE,
)

STRETCH_LATENCY = Histogram(
    "stretch_duration_seconds",
    "Time spent in PBKDF2 key stretching",
    labelnames=("digest",),
    namespace=NAMESPACE,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

SCRAM_WITHOUT_SASLPREP = Counter(
    "scram_without_saslprep_total",
    "SCRAM credentials resolved while SASLprep normalization is unavailable",
    namespace=NAMESPACE,
)


def observe_operation(operation: str, outcome: str) -> None:
    """Record the outcome of a codec operation."""

    CREDENTIAL_OPERATIONS.labels(operation=operation, outcome=outcome).inc()


def metrics_response() -> tuple[bytes, str]:
    """Return serialized Prometheus metrics payload and content type."""

    payload = generate_latest()
    return payload, CONTENT_TYPE_LATEST


class StretchTimer:
    """Context manager helper to time key stretching."""

    def __init__(self, digest: str) -> None:
        self.digest = digest
        self._start: float | None = None

    def __enter__(self) -> StretchTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        if self._start is None:
            return
        duration = time.perf_counter() - self._start
        STRETCH_LATENCY.labels(digest=self.digest).observe(duration)
