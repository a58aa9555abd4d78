"""Monitoring infrastructure for stepledger"""
from stepledger.monitoring.prometheus_metrics import (
    metrics,
    track_sync,
    record_sync_day,
    record_source_error,
    record_anomaly,
    record_badge_award,
)

__all__ = [
    "metrics",
    "track_sync",
    "record_sync_day",
    "record_source_error",
    "record_anomaly",
    "record_badge_award",
]
