"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from stepledger.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self, enabled: bool = ENABLE_PROMETHEUS):
        if not enabled:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        try:
            # Step sync metrics
            self.sync_days_total = Counter(
                'steps_sync_days_total',
                'Days processed by window sync',
                ['outcome']
            )

            self.sync_duration_seconds = Histogram(
                'steps_sync_duration_seconds',
                'Window sync latency',
                buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 60.0]
            )

            self.source_errors_total = Counter(
                'steps_source_errors_total',
                'Health source query failures coerced to zero',
                ['query']
            )

            self.anomalies_flagged_total = Counter(
                'steps_anomalies_flagged_total',
                'Days flagged by the anomaly policy',
                ['reason']
            )

            # Gamification metrics
            self.badges_awarded_total = Counter(
                'badges_awarded_total',
                'Newly awarded badges',
                ['badge_type']
            )

            self._enabled = True
            logger.info("Prometheus metrics initialized")

        except ValueError as e:
            # Already registered in this process (default registry)
            logger.error(f"Failed to initialize Prometheus metrics: {e}")
            self._enabled = False

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


@contextmanager
def track_sync():
    """Track window sync duration"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    try:
        yield
    finally:
        metrics.sync_duration_seconds.observe(time.time() - start_time)


def record_sync_day(outcome: str) -> None:
    """Count one processed day (written, unchanged, kept_existing, failed)"""
    if not metrics.enabled:
        return
    metrics.sync_days_total.labels(outcome=outcome).inc()


def record_source_error(query: str) -> None:
    """Count a health source failure (samples or total)"""
    if not metrics.enabled:
        return
    metrics.source_errors_total.labels(query=query).inc()


def record_anomaly(reason: str) -> None:
    """Count a flagged day"""
    if not metrics.enabled:
        return
    metrics.anomalies_flagged_total.labels(reason=reason).inc()


def record_badge_award(badge_type: str) -> None:
    """Count a newly awarded badge"""
    if not metrics.enabled:
        return
    metrics.badges_awarded_total.labels(badge_type=badge_type).inc()
