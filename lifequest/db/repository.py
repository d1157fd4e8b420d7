"""
Progression repository interface

The gamification engine never touches storage directly. Services load a
user's records through this interface, run a pure operation and write the
results back. Implementations own concurrency control: `save_state` and
`save_progress` are a compare-and-swap on `ProgressionState.version`, and
`save_progress` writes a state change and its record as one unit.

Persisted layout, all keyed by user id:
- one ProgressionState
- UserMission records keyed by mission id
- UserSkill records keyed by (tree id, node id)
- an append-only UserReward ledger keyed by reward id
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from lifequest.models.mission import UserMission
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import UserReward
from lifequest.models.skill import UserSkill


class ProgressionRepository(ABC):
    """Async storage contract for one user's gamification records"""

    @abstractmethod
    async def load_state(self, user_id: str) -> ProgressionState:
        """Stored state, or a fresh default (version 0) for an unknown user"""

    @abstractmethod
    async def save_state(self, state: ProgressionState, expected_version: int) -> ProgressionState:
        """
        Persist `state` if the stored version still equals `expected_version`

        Returns:
            The stored state with its version incremented

        Raises:
            ConcurrentModificationError: another write got there first
        """

    @abstractmethod
    async def save_progress(
        self,
        state: ProgressionState,
        expected_version: int,
        user_mission: Optional[UserMission] = None,
        removed_mission_id: Optional[str] = None,
        user_skill: Optional[UserSkill] = None,
        user_reward: Optional[UserReward] = None,
    ) -> ProgressionState:
        """
        Persist a state change together with the record that caused it

        One unit of work: either the state and every given record are
        written, or nothing is. `user_reward` is appended to the ledger and
        `removed_mission_id` deletes that mission record.

        Returns:
            The stored state with its version incremented

        Raises:
            ConcurrentModificationError: another write got there first
            RecordNotFoundError: removed_mission_id has no record
            StorageError: user_reward is already in the ledger
        """

    @abstractmethod
    async def get_user_missions(self, user_id: str) -> Dict[str, UserMission]:
        """Mission records keyed by mission_id"""

    @abstractmethod
    async def save_user_mission(self, user_mission: UserMission) -> None:
        ...

    @abstractmethod
    async def delete_user_mission(self, user_id: str, mission_id: str) -> None:
        """
        Raises:
            RecordNotFoundError: no record for (user_id, mission_id)
        """

    @abstractmethod
    async def get_user_skills(self, user_id: str) -> Dict[Tuple[str, str], UserSkill]:
        """Skill records keyed by (tree_id, node_id)"""

    @abstractmethod
    async def save_user_skill(self, user_skill: UserSkill) -> None:
        ...

    @abstractmethod
    async def get_user_rewards(self, user_id: str) -> Dict[str, UserReward]:
        """Ledger entries keyed by reward_id"""

    @abstractmethod
    async def append_user_reward(self, user_reward: UserReward) -> None:
        """
        Raises:
            StorageError: the user already holds this reward
        """

    @abstractmethod
    async def reset_user(self, user_id: str, state: ProgressionState) -> ProgressionState:
        """Drop every record for the user and store `state` as the new baseline"""
