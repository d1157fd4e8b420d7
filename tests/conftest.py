"""Global test fixtures and utilities for lifequest tests"""
import pytest
from datetime import datetime, timezone

from tests.factories import make_node, make_tree

from lifequest.db.memory_store import InMemoryProgressionStore
from lifequest.gamification.catalog import Catalog, build_default_catalog
from lifequest.models.mission import (
    Mission,
    MissionCategory,
    MissionDifficulty,
    MissionRequirements,
)
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import Reward, RewardType
from lifequest.monitoring.prometheus_metrics import PrometheusMetrics
from lifequest.services.gamification_service import GamificationService


# ============================================================================
# User & State Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user_001"


@pytest.fixture
def fixed_now():
    """Deterministic timestamp for records"""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fresh_state(test_user_id):
    """Brand-new user: level 1, nothing earned"""
    return ProgressionState(user_id=test_user_id)


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def big_mission():
    """Solo mission worth 250 XP"""
    return Mission(
        id="mission_big",
        category=MissionCategory.HEALTH,
        title="Marathon Month",
        description="Run every day for a month",
        difficulty=MissionDifficulty.HARD,
        xp_reward=250,
        coin_reward=30,
        lifescore_impact=20,
    )


@pytest.fixture
def driving_tree():
    """defensive_driving -> speed_control, the second gated on level 2"""
    return make_tree(
        make_node("defensive_driving", xp_cost=50),
        make_node("speed_control", xp_cost=30, min_level=2, required_skills=["defensive_driving"]),
    )


@pytest.fixture
def test_catalog(big_mission, driving_tree):
    """Small catalog covering each entry kind"""
    return Catalog(
        missions=[
            big_mission,
            Mission(
                id="mission_gated",
                category=MissionCategory.SAFE_DRIVING,
                title="Advanced Driving",
                difficulty=MissionDifficulty.MEDIUM,
                xp_reward=50,
                requirements=MissionRequirements(
                    min_level=2,
                    previous_missions=["mission_big"],
                    required_skills=["defensive_driving"],
                ),
            ),
            Mission(
                id="mission_group",
                category=MissionCategory.FAMILY_PROTECTION,
                title="Family Plan",
                difficulty=MissionDifficulty.MEDIUM,
                xp_reward=60,
                is_collaborative=True,
                max_participants=4,
                requirements=MissionRequirements(min_level=10),
            ),
            Mission(
                id="mission_retired",
                category=MissionCategory.LIFESTYLE,
                title="Retired Mission",
                difficulty=MissionDifficulty.EASY,
                xp_reward=10,
                is_active=False,
            ),
        ],
        skill_trees=[driving_tree],
        rewards=[
            Reward(id="badge_safe", type=RewardType.BADGE, title="Safe Driver"),
            Reward(id="boost", type=RewardType.COIN_BOOST, title="XP Multiplier", coins_cost=100),
            Reward(id="retired", type=RewardType.BADGE, title="Old Badge", is_active=False),
        ],
    )


@pytest.fixture
def default_catalog():
    """Built-in catalog"""
    return build_default_catalog()


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    """Empty in-memory repository"""
    return InMemoryProgressionStore()


@pytest.fixture
def test_metrics():
    """Enabled metrics on a private registry"""
    return PrometheusMetrics(enabled=True)


@pytest.fixture
def gamification_service(memory_store, test_catalog, test_metrics):
    """GamificationService over the in-memory store and the small catalog"""
    return GamificationService(memory_store, test_catalog, metrics_collector=test_metrics)
