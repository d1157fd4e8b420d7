"""
XP, Level, LifeScore, Coins and Streak calculations

Pure transforms over a single ProgressionState. Nothing here touches
storage and nothing raises: every function is total over integers and
clamps instead of rejecting.

Leveling Curve:
- Fixed width: 100 XP per level, level = floor(xp / 100) + 1

Bounds:
- xp, coins, streak_days: floor-clamped at 0
- lifescore: clamped to [0, 1000]
"""

from typing import Dict, Optional
import logging

from lifequest import config
from lifequest.gamification.outcomes import ProgressionUpdate
from lifequest.models.progression import (
    MAX_LIFESCORE,
    MIN_LIFESCORE,
    XP_PER_LEVEL,
    ProgressionState,
    level_for_xp,
)

logger = logging.getLogger(__name__)


def calculate_level_from_xp(total_xp: int) -> Dict[str, int]:
    """
    Calculate level details from total XP

    Returns:
        {
            'current_level': int,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int,
            'level_progress_percent': int (0-100)
        }
    """
    total_xp = max(total_xp, 0)
    level = level_for_xp(total_xp)
    xp_in_level = total_xp - (level - 1) * XP_PER_LEVEL

    return {
        "current_level": level,
        "xp_in_current_level": xp_in_level,
        "xp_to_next_level": XP_PER_LEVEL - xp_in_level,
        "total_xp_for_next_level": level * XP_PER_LEVEL,
        "level_progress_percent": xp_in_level * 100 // XP_PER_LEVEL,
    }


def get_lifescore_label(lifescore: int) -> str:
    """Human-readable LifeScore band"""
    if lifescore >= 800:
        return "Excellent"
    if lifescore >= 600:
        return "Good"
    if lifescore >= 400:
        return "Fair"
    return "Needs Improvement"


def clamp_lifescore(value: int) -> int:
    return min(max(value, MIN_LIFESCORE), MAX_LIFESCORE)


def new_progression_state(user_id: str, starting_lifescore: Optional[int] = None) -> ProgressionState:
    """
    Default record for a first-time user

    Args:
        user_id: User identifier
        starting_lifescore: Seeded LifeScore; defaults to the configured STARTING_LIFESCORE
    """
    if starting_lifescore is None:
        starting_lifescore = config.get_starting_lifescore()

    return ProgressionState(user_id=user_id, lifescore=clamp_lifescore(starting_lifescore))


def apply_xp(state: ProgressionState, amount: int) -> ProgressionUpdate:
    """
    Add (or spend, when negative) XP; the level follows from the new total

    xp' = max(xp + amount, 0). Callers that must refuse an unaffordable
    spend check `state.xp` first; this primitive only clamps.
    """
    new_xp = max(state.xp + amount, 0)
    new_state = state.touched(xp=new_xp)
    update = ProgressionUpdate(state=new_state, previous_state=state)

    if update.leveled_up:
        logger.info(
            f"User {state.user_id} leveled up from {state.level} to {new_state.level} "
            f"(XP {state.xp} -> {new_xp})"
        )

    return update


def apply_lifescore(state: ProgressionState, delta: int) -> ProgressionUpdate:
    """lifescore' = clamp(lifescore + delta, 0, 1000); overflow is absorbed"""
    new_state = state.touched(lifescore=clamp_lifescore(state.lifescore + delta))
    return ProgressionUpdate(state=new_state, previous_state=state)


def apply_coins(state: ProgressionState, delta: int) -> ProgressionUpdate:
    """
    coins' = max(coins + delta, 0)

    Never fails. Insufficient-funds semantics belong to the caller
    (see lifequest.gamification.rewards.redeem).
    """
    new_state = state.touched(coins=max(state.coins + delta, 0))
    return ProgressionUpdate(state=new_state, previous_state=state)


def apply_streak(state: ProgressionState, increment: bool) -> ProgressionUpdate:
    """Increment the streak, or step it down by one (never below 0)"""
    if increment:
        new_streak = state.streak_days + 1
    else:
        new_streak = max(state.streak_days - 1, 0)

    new_state = state.touched(streak_days=new_streak)
    return ProgressionUpdate(state=new_state, previous_state=state)


def reset(state: ProgressionState) -> ProgressionUpdate:
    """Reinitialize to defaults, keeping identity and storage version"""
    fresh = new_progression_state(state.user_id).touched(version=state.version)
    logger.info(f"Progression reset for user {state.user_id}")
    return ProgressionUpdate(state=fresh, previous_state=state)


def apply_rewards(
    state: ProgressionState,
    xp: int = 0,
    lifescore: int = 0,
    coins: int = 0,
) -> ProgressionUpdate:
    """Apply an XP/LifeScore/coin bundle in that order as one update"""
    current = state
    if xp:
        current = apply_xp(current, xp).state
    if lifescore:
        current = apply_lifescore(current, lifescore).state
    if coins:
        current = apply_coins(current, coins).state
    return ProgressionUpdate(state=current, previous_state=state)
