"""
Gamification engine for LifeQuest

Pure, synchronous transforms over one user's records:
- Progression: XP, level, LifeScore, coins and streak
- Missions: start, progress, complete, abandon
- Skill trees: requirement checks and unlocks
- Rewards: coin redemption and free grants

Nothing in this package performs I/O; persistence and per-user locking
live in lifequest.services.
"""

from lifequest.gamification.outcomes import (
    Rejection,
    ProgressionUpdate,
    Outcome,
    MissionOutcome,
    SkillOutcome,
    RewardOutcome,
)
from lifequest.gamification.progression import (
    apply_xp,
    apply_lifescore,
    apply_coins,
    apply_streak,
    apply_rewards,
    reset,
    new_progression_state,
    calculate_level_from_xp,
    get_lifescore_label,
)
from lifequest.gamification.catalog import Catalog, load_catalog, build_default_catalog
from lifequest.gamification.skills import (
    check_skill_requirements,
    get_unlockable,
    unlock,
    update_skill_progress,
    get_prerequisite_chain,
    get_tree_progress,
    validate_skill_tree,
)
from lifequest.gamification import missions, rewards

__all__ = [
    # Outcomes
    "Rejection",
    "ProgressionUpdate",
    "Outcome",
    "MissionOutcome",
    "SkillOutcome",
    "RewardOutcome",
    # Progression
    "apply_xp",
    "apply_lifescore",
    "apply_coins",
    "apply_streak",
    "apply_rewards",
    "reset",
    "new_progression_state",
    "calculate_level_from_xp",
    "get_lifescore_label",
    # Catalog
    "Catalog",
    "load_catalog",
    "build_default_catalog",
    # Skills
    "check_skill_requirements",
    "get_unlockable",
    "unlock",
    "update_skill_progress",
    "get_prerequisite_chain",
    "get_tree_progress",
    "validate_skill_tree",
    # Missions and rewards (start/complete/redeem/earn share generic names)
    "missions",
    "rewards",
]
