"""Reward models for gamification"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class RewardType(str, Enum):
    """Reward types"""
    BADGE = "badge"
    COIN_BOOST = "coin_boost"
    PARTNER_OFFER = "partner_offer"
    STREAK_BONUS = "streak_bonus"
    ACHIEVEMENT = "achievement"


class BadgeRarity(str, Enum):
    """Badge rarity (informational)"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class PartnerOffer(BaseModel):
    """Partner discount attached to a reward"""
    model_config = ConfigDict(frozen=True)

    partner_name: Optional[str] = None
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    offer_code: Optional[str] = None
    valid_until: Optional[datetime] = None
    terms_conditions: Optional[str] = None
    category: Optional[str] = None


class Reward(BaseModel):
    """Reward catalog entry; coins_cost == 0 means earn-only"""
    model_config = ConfigDict(frozen=True)

    id: str
    type: RewardType
    title: str
    description: str = ""
    coins_cost: int = Field(default=0, ge=0)
    badge_rarity: BadgeRarity = BadgeRarity.COMMON
    partner_offer: Optional[PartnerOffer] = None
    is_active: bool = True

    @property
    def is_purchasable(self) -> bool:
        return self.coins_cost > 0


class RewardContext(BaseModel):
    """Why a reward was granted"""
    model_config = ConfigDict(frozen=True)

    mission_id: Optional[str] = None
    skill_id: Optional[str] = None
    scenario_id: Optional[str] = None
    achievement_type: Optional[str] = None
    streak_days: Optional[int] = None


class UserReward(BaseModel):
    """Ledger entry: one per (user, reward)"""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    reward_id: str
    earned_at: datetime
    coins_spent: int = 0
    context: RewardContext = Field(default_factory=RewardContext)

    @staticmethod
    def key_for(user_id: str, reward_id: str) -> str:
        return f"{user_id}_{reward_id}"
