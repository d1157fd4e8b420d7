"""
Reward Redemption

Two ways into the reward ledger:
- redeem: coin purchase of a purchasable reward (coins_cost > 0)
- earn: free grant for badges and achievements, no coin check

Both refuse a reward the user already holds; the ledger holds at most one
entry per (user, reward). `user_rewards` is a mapping of reward_id ->
UserReward for one user.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
import logging

from lifequest.gamification.catalog import Catalog
from lifequest.gamification.outcomes import RewardOutcome, Rejection
from lifequest.gamification.progression import apply_coins
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import (
    BadgeRarity,
    Reward,
    RewardContext,
    RewardType,
    UserReward,
)

logger = logging.getLogger(__name__)

UserRewards = Mapping[str, UserReward]

PURCHASE_CONTEXT = RewardContext(achievement_type="purchase")


def _lookup_active(catalog: Catalog, reward_id: str) -> Optional[Reward]:
    reward = catalog.get_reward(reward_id)
    if reward is None or not reward.is_active:
        return None
    return reward


def redeem(
    catalog: Catalog,
    user_rewards: UserRewards,
    state: ProgressionState,
    reward_id: str,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RewardOutcome:
    """
    Buy a reward with coins

    Checks, in order: NOT_FOUND (unknown or inactive), NOT_PURCHASABLE
    (coins_cost == 0, use earn), ALREADY_OWNED, INSUFFICIENT_COINS. On
    success the cost is deducted and a ledger entry is returned.
    """
    user_id = user_id or state.user_id

    reward = _lookup_active(catalog, reward_id)
    if reward is None:
        logger.info(f"User {user_id} tried to redeem unknown reward '{reward_id}'")
        return RewardOutcome.rejected(state, Rejection.NOT_FOUND, detail=f"Reward '{reward_id}' not found")

    if not reward.is_purchasable:
        return RewardOutcome.rejected(
            state,
            Rejection.NOT_PURCHASABLE,
            detail=f"Reward '{reward_id}' cannot be purchased with coins",
            reward=reward,
        )

    if reward_id in user_rewards:
        logger.info(f"User {user_id} already owns reward '{reward_id}'")
        return RewardOutcome.rejected(
            state,
            Rejection.ALREADY_OWNED,
            detail=f"Reward '{reward_id}' already owned",
            reward=reward,
            user_reward=user_rewards[reward_id],
        )

    if state.coins < reward.coins_cost:
        logger.info(
            f"User {user_id} cannot afford reward '{reward_id}': "
            f"costs {reward.coins_cost}, has {state.coins}"
        )
        return RewardOutcome.rejected(
            state,
            Rejection.INSUFFICIENT_COINS,
            detail=f"Reward '{reward_id}' costs {reward.coins_cost} coins, only {state.coins} available",
            reward=reward,
        )

    update = apply_coins(state, -reward.coins_cost)
    user_reward = UserReward(
        id=UserReward.key_for(user_id, reward_id),
        user_id=user_id,
        reward_id=reward_id,
        earned_at=now or datetime.now(timezone.utc),
        coins_spent=reward.coins_cost,
        context=PURCHASE_CONTEXT,
    )

    logger.info(f"User {user_id} redeemed reward '{reward_id}' for {reward.coins_cost} coins")
    return RewardOutcome(
        state=update.state,
        previous_state=state,
        user_reward=user_reward,
        reward=reward,
        coins_spent=reward.coins_cost,
    )


def earn(
    catalog: Catalog,
    user_rewards: UserRewards,
    state: ProgressionState,
    reward_id: str,
    user_id: Optional[str] = None,
    context: Optional[RewardContext] = None,
    now: Optional[datetime] = None,
) -> RewardOutcome:
    """Grant a reward for free (badges, achievements, streak bonuses)"""
    user_id = user_id or state.user_id

    reward = _lookup_active(catalog, reward_id)
    if reward is None:
        return RewardOutcome.rejected(state, Rejection.NOT_FOUND, detail=f"Reward '{reward_id}' not found")

    if reward_id in user_rewards:
        logger.info(f"User {user_id} already earned reward '{reward_id}'")
        return RewardOutcome.rejected(
            state,
            Rejection.ALREADY_OWNED,
            detail=f"Reward '{reward_id}' already earned",
            reward=reward,
            user_reward=user_rewards[reward_id],
        )

    user_reward = UserReward(
        id=UserReward.key_for(user_id, reward_id),
        user_id=user_id,
        reward_id=reward_id,
        earned_at=now or datetime.now(timezone.utc),
        context=context or RewardContext(),
    )

    logger.info(f"User {user_id} earned reward '{reward_id}' ({reward.type.value})")
    return RewardOutcome(state=state, previous_state=state, user_reward=user_reward, reward=reward)


def can_earn_reward(catalog: Catalog, user_rewards: UserRewards, reward_id: str) -> Dict[str, Any]:
    """
    Check whether a reward can still be granted

    Returns:
        {'can_earn': bool, 'reason': str or None}
    """
    reward = catalog.get_reward(reward_id)
    if reward is None:
        return {"can_earn": False, "reason": "Reward not found"}

    if reward_id in user_rewards:
        return {"can_earn": False, "reason": "Reward already earned"}

    if not reward.is_active:
        return {"can_earn": False, "reason": "Reward is not available"}

    return {"can_earn": True, "reason": None}


def filter_rewards(
    catalog: Catalog,
    reward_type: Optional[RewardType] = None,
    rarity: Optional[BadgeRarity] = None,
    max_cost: Optional[int] = None,
    purchasable: Optional[bool] = None,
) -> List[Reward]:
    """Active catalog rewards matching every given criterion"""
    filtered = [r for r in catalog.rewards if r.is_active]

    if reward_type:
        filtered = [r for r in filtered if r.type == reward_type]

    if rarity:
        filtered = [r for r in filtered if r.badge_rarity == rarity]

    if max_cost is not None:
        filtered = [r for r in filtered if r.coins_cost <= max_cost]

    if purchasable is not None:
        filtered = [r for r in filtered if r.is_purchasable == purchasable]

    return filtered


def get_reward_stats(catalog: Catalog, user_rewards: UserRewards, recent_limit: int = 5) -> Dict[str, Any]:
    """
    Summarize a user's reward ledger

    Returns:
        {
            'total_rewards': int,
            'badges_earned': int,
            'coins_spent': int,
            'partner_offers_used': int,
            'rarity_distribution': {rarity: count} over badges,
            'recent_rewards': list[UserReward], newest first
        }
    """
    entries = list(user_rewards.values())
    rarity_distribution = {rarity.value: 0 for rarity in BadgeRarity}
    badges = 0
    partner_offers = 0

    for entry in entries:
        reward = catalog.get_reward(entry.reward_id)
        if reward is None:
            continue
        if reward.type == RewardType.BADGE:
            badges += 1
            rarity_distribution[reward.badge_rarity.value] += 1
        elif reward.type == RewardType.PARTNER_OFFER:
            partner_offers += 1

    return {
        "total_rewards": len(entries),
        "badges_earned": badges,
        "coins_spent": sum(entry.coins_spent for entry in entries),
        "partner_offers_used": partner_offers,
        "rarity_distribution": rarity_distribution,
        "recent_rewards": sorted(entries, key=lambda e: e.earned_at, reverse=True)[:recent_limit],
    }
