"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram

from lifequest.config import ENABLE_PROMETHEUS
from lifequest.gamification.outcomes import Outcome

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self, enabled: Optional[bool] = None, registry: Optional[CollectorRegistry] = None):
        self._enabled = ENABLE_PROMETHEUS if enabled is None else enabled
        if not self._enabled:
            logger.info("Prometheus metrics disabled")
            return

        # Own registry so several instances (tests, multiple services) can coexist
        self.registry = registry or CollectorRegistry()

        # Operation Metrics
        self.operations_total = Counter(
            'lifequest_operations_total',
            'Total gamification operations',
            ['operation', 'result'],
            registry=self.registry
        )

        self.rejections_total = Counter(
            'lifequest_rejections_total',
            'Operations refused by a business rule',
            ['operation', 'reason'],
            registry=self.registry
        )

        self.operation_duration_seconds = Histogram(
            'lifequest_operation_duration_seconds',
            'Gamification operation latency',
            ['operation'],
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
            registry=self.registry
        )

        # Progression Metrics
        self.xp_awarded_total = Counter(
            'lifequest_xp_awarded_total',
            'Total XP granted to users',
            registry=self.registry
        )

        self.coins_spent_total = Counter(
            'lifequest_coins_spent_total',
            'Total coins spent on rewards',
            registry=self.registry
        )

        self.level_ups_total = Counter(
            'lifequest_level_ups_total',
            'Total level-ups',
            registry=self.registry
        )

        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled

    def record_outcome(self, operation: str, outcome: Outcome) -> None:
        """Count a finished operation and its effect on progression"""
        if not self._enabled:
            return

        if not outcome.ok:
            self.operations_total.labels(operation=operation, result="rejected").inc()
            self.rejections_total.labels(operation=operation, reason=outcome.rejection.value).inc()
            return

        self.operations_total.labels(operation=operation, result="success").inc()

        if outcome.xp_delta > 0:
            self.xp_awarded_total.inc(outcome.xp_delta)
        if outcome.coins_delta < 0:
            self.coins_spent_total.inc(-outcome.coins_delta)
        if outcome.leveled_up:
            self.level_ups_total.inc()


# Global metrics instance
metrics = PrometheusMetrics()


@contextmanager
def track_operation(operation: str, collector: Optional[PrometheusMetrics] = None):
    """Track operation latency; exceptions are counted as result="error" and re-raised"""
    collector = collector or metrics
    if not collector.enabled:
        yield
        return

    start_time = time.time()

    try:
        yield
    except Exception:
        collector.operations_total.labels(operation=operation, result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        collector.operation_duration_seconds.labels(operation=operation).observe(duration)
