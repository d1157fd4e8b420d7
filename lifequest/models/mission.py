"""Mission models for gamification"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from lifequest.models.progression import MAX_PROGRESS


class MissionCategory(str, Enum):
    """Mission (and skill tree) categories"""
    SAFE_DRIVING = "safe_driving"
    HEALTH = "health"
    FINANCIAL_GUARDIAN = "financial_guardian"
    FAMILY_PROTECTION = "family_protection"
    LIFESTYLE = "lifestyle"


class MissionDifficulty(str, Enum):
    """Mission difficulty levels"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"
    EPIC = "epic"


class MissionRequirements(BaseModel):
    """Start conditions for a mission; an unset field imposes no condition"""
    model_config = ConfigDict(frozen=True)

    min_level: Optional[int] = Field(default=None, ge=1)
    previous_missions: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)


class Mission(BaseModel):
    """Mission catalog entry"""
    model_config = ConfigDict(frozen=True)

    id: str
    category: MissionCategory
    title: str
    description: str = ""
    difficulty: MissionDifficulty
    xp_reward: int = Field(default=0, ge=0)
    coin_reward: int = Field(default=0, ge=0)
    lifescore_impact: int = 0
    is_collaborative: bool = False
    max_participants: int = Field(default=1, ge=1)
    duration_days: int = Field(default=1, ge=1)
    requirements: MissionRequirements = Field(default_factory=MissionRequirements)
    is_active: bool = True


class UserMissionStatus(str, Enum):
    """Stored mission status; "available" is the absence of a record"""
    ACTIVE = "active"
    COMPLETED = "completed"


class UserMission(BaseModel):
    """A user's instance of a mission"""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    mission_id: str
    status: UserMissionStatus = UserMissionStatus.ACTIVE
    progress: int = Field(default=0, ge=0, le=MAX_PROGRESS)
    started_at: datetime
    completed_at: Optional[datetime] = None
    updated_at: datetime
    # Frozen to the catalog values at completion, 0 until then
    xp_earned: int = 0
    lifescore_change: int = 0
    coins_earned: int = 0

    @staticmethod
    def key_for(user_id: str, mission_id: str) -> str:
        return f"{user_id}_{mission_id}"
