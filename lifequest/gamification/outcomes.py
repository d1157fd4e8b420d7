"""
Operation outcomes

Every gamification operation returns one of these instead of raising for
business-rule violations. `ok` discriminates success from rejection; on a
rejection `state` is the untouched input state and no record was built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from lifequest.models.progression import ProgressionState
from lifequest.models.mission import UserMission
from lifequest.models.skill import UserSkill
from lifequest.models.reward import Reward, UserReward


class Rejection(str, Enum):
    """Why a transition was refused"""
    # Missions
    ALREADY_ACTIVE_OR_COMPLETED = "already_active_or_completed"
    NOT_ACTIVE = "not_active"
    ALREADY_COMPLETED = "already_completed"
    # Skills (REQUIREMENTS_NOT_MET is shared with mission start)
    ALREADY_UNLOCKED = "already_unlocked"
    REQUIREMENTS_NOT_MET = "requirements_not_met"
    INSUFFICIENT_XP = "insufficient_xp"
    # Rewards
    ALREADY_OWNED = "already_owned"
    INSUFFICIENT_COINS = "insufficient_coins"
    NOT_FOUND = "not_found"
    NOT_PURCHASABLE = "not_purchasable"


@dataclass(frozen=True)
class ProgressionUpdate:
    """New state plus the state it was derived from"""
    state: ProgressionState
    previous_state: ProgressionState

    @property
    def xp_delta(self) -> int:
        return self.state.xp - self.previous_state.xp

    @property
    def lifescore_delta(self) -> int:
        return self.state.lifescore - self.previous_state.lifescore

    @property
    def coins_delta(self) -> int:
        return self.state.coins - self.previous_state.coins

    @property
    def streak_delta(self) -> int:
        return self.state.streak_days - self.previous_state.streak_days

    @property
    def leveled_up(self) -> bool:
        return self.state.level > self.previous_state.level


@dataclass(frozen=True)
class Outcome(ProgressionUpdate):
    """Result of a guarded transition"""
    rejection: Optional[Rejection] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def rejected(cls, state: ProgressionState, rejection: Rejection, detail: str = "", **fields):
        return cls(state=state, previous_state=state, rejection=rejection, detail=detail, **fields)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses"""
        return {
            "success": self.ok,
            "rejection": self.rejection.value if self.rejection else None,
            "detail": self.detail,
            "state": self.state.model_dump(mode="json"),
            "xp_delta": self.xp_delta,
            "lifescore_delta": self.lifescore_delta,
            "coins_delta": self.coins_delta,
            "leveled_up": self.leveled_up,
            "old_level": self.previous_state.level,
            "new_level": self.state.level,
        }


@dataclass(frozen=True)
class MissionOutcome(Outcome):
    user_mission: Optional[UserMission] = None
    xp_earned: int = 0
    lifescore_change: int = 0
    coins_earned: int = 0
    completed: bool = False
    unmet_requirements: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "user_mission": self.user_mission.model_dump(mode="json") if self.user_mission else None,
            "xp_earned": self.xp_earned,
            "lifescore_change": self.lifescore_change,
            "coins_earned": self.coins_earned,
            "completed": self.completed,
            "unmet_requirements": list(self.unmet_requirements),
        })
        return data


@dataclass(frozen=True)
class SkillOutcome(Outcome):
    user_skill: Optional[UserSkill] = None
    xp_spent: int = 0
    unmet_requirements: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "user_skill": self.user_skill.model_dump(mode="json") if self.user_skill else None,
            "xp_spent": self.xp_spent,
            "unmet_requirements": list(self.unmet_requirements),
        })
        return data


@dataclass(frozen=True)
class RewardOutcome(Outcome):
    user_reward: Optional[UserReward] = None
    reward: Optional[Reward] = None
    coins_spent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "user_reward": self.user_reward.model_dump(mode="json") if self.user_reward else None,
            "reward_id": self.reward.id if self.reward else None,
            "coins_spent": self.coins_spent,
        })
        return data
