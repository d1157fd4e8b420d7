"""
In-memory progression store

Dict-backed ProgressionRepository for tests, the self-check entry point and
single-process deployments. Nothing is persisted across restarts.
"""

from typing import Dict, Optional, Tuple
import logging

from lifequest.db.repository import ProgressionRepository
from lifequest.exceptions import ConcurrentModificationError, RecordNotFoundError, StorageError
from lifequest.gamification.progression import new_progression_state
from lifequest.models.mission import UserMission
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import UserReward
from lifequest.models.skill import UserSkill

logger = logging.getLogger(__name__)


class InMemoryProgressionStore(ProgressionRepository):
    """Records live in per-user dicts; all stored models are frozen"""

    def __init__(self):
        self._states: Dict[str, ProgressionState] = {}
        self._missions: Dict[str, Dict[str, UserMission]] = {}
        self._skills: Dict[str, Dict[Tuple[str, str], UserSkill]] = {}
        self._rewards: Dict[str, Dict[str, UserReward]] = {}
        logger.debug("InMemoryProgressionStore initialized")

    def _check_version(self, state: ProgressionState, expected_version: int) -> int:
        current = self._states.get(state.user_id)
        current_version = current.version if current else 0

        if current_version != expected_version:
            raise ConcurrentModificationError(
                message=f"Progression for user {state.user_id} changed during update",
                expected_version=expected_version,
                actual_version=current_version,
                user_id=state.user_id,
                operation="save_state",
            )
        return current_version

    def _check_mission_exists(self, user_id: str, mission_id: str) -> None:
        if mission_id not in self._missions.get(user_id, {}):
            raise RecordNotFoundError(
                message=f"No mission '{mission_id}' for user {user_id}",
                record_type="user_mission",
                record_id=UserMission.key_for(user_id, mission_id),
                user_id=user_id,
            )

    def _check_reward_new(self, user_reward: UserReward) -> None:
        if user_reward.reward_id in self._rewards.get(user_reward.user_id, {}):
            raise StorageError(
                message=f"Reward '{user_reward.reward_id}' already recorded for user {user_reward.user_id}",
                user_id=user_reward.user_id,
                operation="append_user_reward",
            )

    async def load_state(self, user_id: str) -> ProgressionState:
        state = self._states.get(user_id)
        if state is None:
            return new_progression_state(user_id)
        return state

    async def save_state(self, state: ProgressionState, expected_version: int) -> ProgressionState:
        current_version = self._check_version(state, expected_version)

        stored = state.model_copy(update={"version": current_version + 1})
        self._states[state.user_id] = stored
        logger.debug(f"Saved progression for user {state.user_id} (version {stored.version})")
        return stored

    async def save_progress(
        self,
        state: ProgressionState,
        expected_version: int,
        user_mission: Optional[UserMission] = None,
        removed_mission_id: Optional[str] = None,
        user_skill: Optional[UserSkill] = None,
        user_reward: Optional[UserReward] = None,
    ) -> ProgressionState:
        # Every check runs before the first write
        current_version = self._check_version(state, expected_version)
        if removed_mission_id is not None:
            self._check_mission_exists(state.user_id, removed_mission_id)
        if user_reward is not None:
            self._check_reward_new(user_reward)

        stored = state.model_copy(update={"version": current_version + 1})
        self._states[state.user_id] = stored
        if removed_mission_id is not None:
            del self._missions[state.user_id][removed_mission_id]
        if user_mission is not None:
            self._missions.setdefault(user_mission.user_id, {})[user_mission.mission_id] = user_mission
        if user_skill is not None:
            self._skills.setdefault(user_skill.user_id, {})[user_skill.key] = user_skill
        if user_reward is not None:
            self._rewards.setdefault(user_reward.user_id, {})[user_reward.reward_id] = user_reward

        logger.debug(f"Saved progression and records for user {state.user_id} (version {stored.version})")
        return stored

    async def get_user_missions(self, user_id: str) -> Dict[str, UserMission]:
        return dict(self._missions.get(user_id, {}))

    async def save_user_mission(self, user_mission: UserMission) -> None:
        self._missions.setdefault(user_mission.user_id, {})[user_mission.mission_id] = user_mission

    async def delete_user_mission(self, user_id: str, mission_id: str) -> None:
        self._check_mission_exists(user_id, mission_id)
        del self._missions[user_id][mission_id]

    async def get_user_skills(self, user_id: str) -> Dict[Tuple[str, str], UserSkill]:
        return dict(self._skills.get(user_id, {}))

    async def save_user_skill(self, user_skill: UserSkill) -> None:
        self._skills.setdefault(user_skill.user_id, {})[user_skill.key] = user_skill

    async def get_user_rewards(self, user_id: str) -> Dict[str, UserReward]:
        return dict(self._rewards.get(user_id, {}))

    async def append_user_reward(self, user_reward: UserReward) -> None:
        self._check_reward_new(user_reward)
        self._rewards.setdefault(user_reward.user_id, {})[user_reward.reward_id] = user_reward

    async def reset_user(self, user_id: str, state: ProgressionState) -> ProgressionState:
        self._missions.pop(user_id, None)
        self._skills.pop(user_id, None)
        self._rewards.pop(user_id, None)

        current = self._states.get(user_id)
        stored = state.model_copy(update={"version": (current.version if current else 0) + 1})
        self._states[user_id] = stored
        logger.info(f"Reset all gamification records for user {user_id}")
        return stored
