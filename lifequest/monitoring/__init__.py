"""Monitoring infrastructure for lifequest"""
from lifequest.monitoring.prometheus_metrics import (
    PrometheusMetrics,
    metrics,
    track_operation,
)

__all__ = [
    "PrometheusMetrics",
    "metrics",
    "track_operation",
]
