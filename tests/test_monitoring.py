"""Tests for monitoring infrastructure"""
import pytest
from unittest.mock import patch

from tests.factories import make_state

from lifequest.gamification.outcomes import Outcome, Rejection
from lifequest.monitoring.prometheus_metrics import PrometheusMetrics, track_operation


class TestPrometheusMetrics:
    """Test Prometheus metrics tracking"""

    def test_metrics_initialization(self):
        """Test metrics are initialized correctly"""
        metrics = PrometheusMetrics(enabled=True)
        assert metrics.enabled is True

    def test_metrics_disabled(self):
        """Test metrics when disabled"""
        metrics = PrometheusMetrics(enabled=False)
        assert metrics.enabled is False

    def test_metrics_follow_config_flag(self):
        """Default comes from ENABLE_PROMETHEUS"""
        with patch("lifequest.monitoring.prometheus_metrics.ENABLE_PROMETHEUS", False):
            assert PrometheusMetrics().enabled is False

    def test_instances_do_not_collide(self):
        """Each instance owns its registry"""
        first = PrometheusMetrics(enabled=True)
        second = PrometheusMetrics(enabled=True)
        first.level_ups_total.inc()

        assert first.registry.get_sample_value("lifequest_level_ups_total") == 1
        assert second.registry.get_sample_value("lifequest_level_ups_total") == 0

    def test_record_success(self):
        """Successful outcome counts XP, coins spent and level-ups"""
        metrics = PrometheusMetrics(enabled=True)
        outcome = Outcome(state=make_state(xp=120, coins=10), previous_state=make_state(xp=90, coins=40))

        metrics.record_outcome("complete_mission", outcome)

        registry = metrics.registry
        assert registry.get_sample_value(
            "lifequest_operations_total", {"operation": "complete_mission", "result": "success"}
        ) == 1
        assert registry.get_sample_value("lifequest_xp_awarded_total") == 30
        assert registry.get_sample_value("lifequest_coins_spent_total") == 30
        assert registry.get_sample_value("lifequest_level_ups_total") == 1

    def test_record_rejection(self):
        """Rejections are counted with their reason"""
        metrics = PrometheusMetrics(enabled=True)
        outcome = Outcome.rejected(make_state(), Rejection.INSUFFICIENT_COINS)

        metrics.record_outcome("redeem_reward", outcome)

        assert metrics.registry.get_sample_value(
            "lifequest_rejections_total", {"operation": "redeem_reward", "reason": "insufficient_coins"}
        ) == 1
        assert metrics.registry.get_sample_value("lifequest_xp_awarded_total") == 0

    def test_record_outcome_disabled_is_noop(self):
        """Disabled metrics ignore outcomes"""
        PrometheusMetrics(enabled=False).record_outcome("x", Outcome.rejected(make_state(), Rejection.NOT_FOUND))

    def test_track_operation_context_manager(self):
        """Test operation tracking context manager"""
        metrics = PrometheusMetrics(enabled=True)

        with track_operation("unlock_skill", metrics):
            pass

        assert metrics.registry.get_sample_value(
            "lifequest_operation_duration_seconds_count", {"operation": "unlock_skill"}
        ) == 1

    def test_track_operation_with_error(self):
        """Exceptions are counted and re-raised"""
        metrics = PrometheusMetrics(enabled=True)

        with pytest.raises(ValueError):
            with track_operation("unlock_skill", metrics):
                raise ValueError("Test error")

        assert metrics.registry.get_sample_value(
            "lifequest_operations_total", {"operation": "unlock_skill", "result": "error"}
        ) == 1

    def test_track_operation_disabled(self):
        """Disabled metrics still run the body"""
        ran = []
        with track_operation("noop", PrometheusMetrics(enabled=False)):
            ran.append(True)
        assert ran == [True]
